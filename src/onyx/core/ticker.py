"""Ticker — the repeating one-second scheduler that drives running timers."""

from __future__ import annotations

import logging
import time
from typing import Callable

from onyx.core.manager import TimersManager

log = logging.getLogger(__name__)

DEFAULT_INTERVAL = 1.0


class Ticker:
    """Calls :meth:`TimersManager.tick` every *interval* seconds.

    Runs in the caller's thread.  Late ticks are not compensated: a delayed
    tick just makes the countdown slower in wall-clock terms.
    """

    def __init__(
        self,
        manager: TimersManager,
        interval: float = DEFAULT_INTERVAL,
        on_tick: Callable[[], None] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._manager = manager
        self._interval = interval
        self._on_tick = on_tick
        self._ticks = 0

    @property
    def ticks(self) -> int:
        return self._ticks

    def run(self, max_ticks: int | None = None) -> int:
        """Tick while any timer runs, or until *max_ticks* ticks have passed.

        Returns the number of ticks performed by this call.
        """
        performed = 0
        while self._manager.has_running_timers():
            if max_ticks is not None and performed >= max_ticks:
                break
            time.sleep(self._interval)
            self._manager.tick()
            performed += 1
            self._ticks += 1
            if self._on_tick is not None:
                self._on_tick()
        log.debug("Ticker stopped after %d tick(s)", performed)
        return performed
