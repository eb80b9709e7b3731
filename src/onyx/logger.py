"""Logging setup for the onyx package.

Everything logs under the ``onyx`` logger; ``configure_logging`` gives it a
rotating file in the config directory and, when asked, a console handler.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(filename)s:%(lineno)d] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER = "onyx"


def configure_logging(
        log_dir: Path,
        level=logging.INFO,
        console=False,
        max_bytes=5 * 1024 * 1024,
        backup_count=5,
) -> logging.Logger:
    """Set up the package logger with a rotating file under *log_dir*.

    Handlers are named, so calling this again in the same process never
    stacks duplicates. A call with a different *log_dir* moves the file
    handler to the new location.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.propagate = False
    logger.setLevel(level)

    fmt = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    # Persistent rotating log file
    file_handler_name = f"{ROOT_LOGGER}:file"
    log_path = (log_dir / f"{ROOT_LOGGER}.log").resolve()
    for handler in list(logger.handlers):
        if handler.get_name() == file_handler_name and Path(handler.baseFilename).resolve() != log_path:
            logger.removeHandler(handler)
            handler.close()
    if not any(h.get_name() == file_handler_name for h in logger.handlers):
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        )
        file_handler.setFormatter(fmt)
        file_handler.set_name(file_handler_name)
        logger.addHandler(file_handler)

    # Console handler, only when asked for
    console_handler_name = f"{ROOT_LOGGER}:console"
    if console and not any(h.get_name() == console_handler_name for h in logger.handlers):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(fmt)
        console_handler.set_name(console_handler_name)
        logger.addHandler(console_handler)

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger
