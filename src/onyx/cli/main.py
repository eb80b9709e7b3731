"""CLI entry point for onyx.

Uses Click to expose the ``onyx`` command group.  Commands are a thin
presentation layer over :class:`~onyx.core.manager.TimersManager` and the
JSON stores in the configuration directory.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, Iterable, TypeVar

import click

import onyx
from onyx.core.coordinator import TimerCoordinator
from onyx.core.manager import TimerNotFoundError, TimersManager
from onyx.core.store import (
    DEFAULT_CONFIG_DIR,
    JsonSubjectStore,
    JsonTimerStore,
    PersistenceError,
)
from onyx.core.subject import Subject, SubjectStatus, parse_duration
from onyx.core.ticker import Ticker
from onyx.core.time_value import InvalidDurationError, TimeValue, format_full, parse_time_text
from onyx.core.timer_state import TimerKind
from onyx.logger import configure_logging

T = TypeVar("T")

KIND_LABELS = {
    TimerKind.STUDY_SESSION: "📖 Study session",
    TimerKind.FREE_SESSION: "🆓 Free session",
}

STATUS_LABELS = {
    SubjectStatus.NOT_STARTED: "not started",
    SubjectStatus.IN_PROGRESS: "in progress",
    SubjectStatus.COMPLETED: "completed",
}


class _App:
    """Stores and manager for one invocation, built on first use."""

    def __init__(self, config_dir: Path) -> None:
        self.config_dir = config_dir
        self._subjects: JsonSubjectStore | None = None
        self._manager: TimersManager | None = None

    @property
    def subjects(self) -> JsonSubjectStore:
        if self._subjects is None:
            self._subjects = JsonSubjectStore(self.config_dir)
        return self._subjects

    @property
    def manager(self) -> TimersManager:
        if self._manager is None:
            self._manager = TimersManager(JsonTimerStore(self.config_dir), self.subjects)
        return self._manager


def _run(action: Callable[[], T]) -> T:
    """Execute *action*, converting domain errors to a CLI error.

    The message is printed to stderr and the process exits with code 1.
    """
    try:
        return action()
    except (InvalidDurationError, TimerNotFoundError, ValueError, PersistenceError) as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


def _match(prefix: str, ids: Iterable[str], what: str) -> str:
    """Return the single id in *ids* starting with *prefix*."""
    matches = [candidate for candidate in ids if candidate.startswith(prefix)]
    if not matches and what == "timer":
        raise TimerNotFoundError(prefix)
    if not matches:
        raise ValueError(f"no {what} matches {prefix!r}")
    if len(matches) > 1:
        raise ValueError(f"{what} id {prefix!r} is ambiguous")
    return matches[0]


def _resolve_timer(manager: TimersManager, prefix: str) -> TimerCoordinator:
    timer_id = _match(prefix, (c.id for c in manager.get_all_timers()), "timer")
    return manager.get_timer(timer_id)


def _resolve_subject(subjects: JsonSubjectStore, prefix: str) -> Subject:
    candidates = subjects.find_all()
    subject_id = _match(prefix, (s.id for s in candidates), "subject")
    return next(s for s in candidates if s.id == subject_id)


def _describe(coordinator: TimerCoordinator, subjects: JsonSubjectStore) -> str:
    line = (
        f"{coordinator.id[:8]}  {KIND_LABELS[coordinator.kind]}  "
        f"{coordinator.get_display():>8}  {coordinator.phase.value}"
    )
    if coordinator.linked_subject_id is not None:
        subject = subjects.find_by_id(coordinator.linked_subject_id)
        line += f"  {subject.name if subject is not None else '(deleted subject)'}"
    return line


@click.group()
@click.version_option(version=onyx.__version__, prog_name="onyx")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="ONYX_CONFIG_DIR",
    default=None,
    help="Directory holding timers.json, subjects.json and logs.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to the console.")
@click.pass_context
def cli(ctx: click.Context, config_dir: Path | None, verbose: bool) -> None:
    """onyx: countdown timers that track study time per subject."""
    config_dir = config_dir if config_dir is not None else DEFAULT_CONFIG_DIR
    configure_logging(
        config_dir / "logs",
        level=logging.DEBUG if verbose else logging.INFO,
        console=verbose,
    )
    ctx.obj = _App(config_dir)


# -- timers ------------------------------------------------------------------


@cli.command()
@click.argument("duration", required=False)
@click.option("--subject", "subject_id", default=None, help="Link a study subject (id or prefix).")
@click.pass_obj
def create(app: _App, duration: str | None, subject_id: str | None) -> None:
    """Create a timer counting down from DURATION (HH:MM:SS)."""
    value: TimeValue | None = None
    if duration is not None:
        value = parse_time_text(duration)
        if value is None:
            click.echo(f"invalid duration {duration!r}, expected HH:MM:SS", err=True)
            sys.exit(1)
        if value.is_zero():
            click.echo("duration must be greater than zero", err=True)
            sys.exit(1)

    kind = TimerKind.FREE_SESSION
    linked_subject_id = None
    if subject_id is not None:
        linked = _run(lambda: _resolve_subject(app.subjects, subject_id))
        kind = TimerKind.STUDY_SESSION
        linked_subject_id = linked.id

    coordinator = _run(lambda: app.manager.create_timer(value, kind, linked_subject_id))
    click.echo(f"Timer created: {coordinator.id} ({coordinator.get_display()})")


@cli.command(name="list")
@click.pass_obj
def list_timers(app: _App) -> None:
    """List all timers."""
    timers = app.manager.get_all_timers()
    if not timers:
        click.echo("No timers")
        return
    for coordinator in timers:
        click.echo(_describe(coordinator, app.subjects))


@cli.command()
@click.argument("timer_id")
@click.pass_obj
def reset(app: _App, timer_id: str) -> None:
    """Reset TIMER_ID to its initial duration."""
    coordinator = _run(lambda: _resolve_timer(app.manager, timer_id))
    coordinator.reset()
    click.echo(f"Timer reset: {coordinator.get_display()}")


@cli.command()
@click.argument("timer_id")
@click.pass_obj
def remove(app: _App, timer_id: str) -> None:
    """Remove TIMER_ID."""
    coordinator = _run(lambda: _resolve_timer(app.manager, timer_id))
    app.manager.remove_timer(coordinator)
    click.echo(f"Timer removed: {coordinator.id}")


@cli.command()
@click.confirmation_option(prompt="Remove every timer?")
@click.pass_obj
def clear(app: _App) -> None:
    """Remove every timer."""
    count = app.manager.get_timers_count()
    app.manager.remove_all_timers()
    click.echo(f"Removed {count} timer(s)")


@cli.command()
@click.argument("timer_ids", nargs=-1)
@click.pass_obj
def run(app: _App, timer_ids: tuple[str, ...]) -> None:
    """Run TIMER_IDS (default: every active timer) in the foreground.

    Press Ctrl-C to pause all timers and exit.
    """
    manager = app.manager
    if timer_ids:
        targets = [_run(lambda prefix=prefix: _resolve_timer(manager, prefix)) for prefix in timer_ids]
    else:
        targets = manager.get_active_timers()
    for coordinator in targets:
        coordinator.start()
    if not manager.has_running_timers():
        click.echo("No timers to run", err=True)
        sys.exit(1)

    reported: set[str] = set()

    def report() -> None:
        running = [c for c in targets if c.running]
        if running:
            click.echo("  ".join(f"{c.id[:8]} {c.get_display()}" for c in running))
        for coordinator in targets:
            if coordinator.is_finished() and coordinator.id not in reported:
                reported.add(coordinator.id)
                click.echo(f"Timer finished: {coordinator.id[:8]}")

    try:
        Ticker(manager, on_tick=report).run()
    except KeyboardInterrupt:
        manager.pause_all_timers()
        click.echo("Paused all timers")


# -- subjects ----------------------------------------------------------------


@cli.group()
def subject() -> None:
    """Manage study subjects."""


@subject.command(name="add")
@click.argument("name")
@click.argument("target")
@click.argument("default_duration")
@click.pass_obj
def add_subject(app: _App, name: str, target: str, default_duration: str) -> None:
    """Add subject NAME with a TARGET study time and a DEFAULT_DURATION per timer.

    Durations are minutes ("25") or hours and minutes ("1h30").
    """
    new_subject = _run(
        lambda: Subject(
            name=name,
            target_time=parse_duration(target),
            default_timer_duration=parse_duration(default_duration),
        )
    )
    _run(lambda: app.subjects.save(new_subject))
    click.echo(f"Subject added: {new_subject.id} ({name})")


@subject.command(name="list")
@click.pass_obj
def list_subjects(app: _App) -> None:
    """List subjects with their progress."""
    subjects = app.subjects.find_all()
    if not subjects:
        click.echo("No subjects")
        return
    for item in subjects:
        default = format_full(TimeValue.from_timedelta(item.default_timer_duration))
        click.echo(
            f"{item.id[:8]}  {item.name}  {item.formatted_time_spent}/{item.formatted_target_time} "
            f"({item.progress_percentage()}, {STATUS_LABELS[item.status]})  default {default}"
        )


@subject.command(name="remove")
@click.argument("subject_id")
@click.pass_obj
def remove_subject(app: _App, subject_id: str) -> None:
    """Remove SUBJECT_ID."""
    item = _run(lambda: _resolve_subject(app.subjects, subject_id))
    _run(lambda: app.subjects.delete_by_id(item.id))
    click.echo(f"Subject removed: {item.name}")
