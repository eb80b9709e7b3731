"""Timer coordinator — the run/pause/reset state machine around one countdown."""

from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Callable

from onyx.core.store import PersistenceError, SubjectStore
from onyx.core.time_value import TimeValue, format_compact
from onyx.core.timer_state import TimerKind, TimerState

log = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerPhase(Enum):
    """Observable phases of a coordinator."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


class TimerCoordinator:
    """Drives one :class:`TimerState` through start/pause/stop/reset.

    The countdown itself only advances when an external scheduler calls
    :meth:`decrement` while the coordinator is running.  Observers register
    plain callables in ``on_state_changed`` and ``on_finished``; no-op
    transitions do not notify.
    """

    def __init__(
        self,
        state: TimerState,
        subject_store: SubjectStore | None = None,
        timer_id: str | None = None,
    ) -> None:
        self._id: str = timer_id if timer_id is not None else str(uuid.uuid4())
        self._state: TimerState = state
        self._subject_store: SubjectStore | None = subject_store
        self._running: bool = False
        self._can_reset: bool = False
        self.on_state_changed: Callback | None = None
        self.on_finished: Callback | None = None

    @classmethod
    def create(
        cls,
        duration: TimeValue,
        kind: TimerKind = TimerKind.FREE_SESSION,
        linked_subject_id: str | None = None,
        subject_store: SubjectStore | None = None,
    ) -> TimerCoordinator:
        """Build an idle coordinator counting down from *duration*."""
        return cls(TimerState(duration, kind, linked_subject_id), subject_store)

    # -- properties ----------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    @property
    def can_reset(self) -> bool:
        return self._can_reset

    @property
    def kind(self) -> TimerKind:
        return self._state.kind

    @property
    def linked_subject_id(self) -> str | None:
        return self._state.linked_subject_id

    @property
    def phase(self) -> TimerPhase:
        if self._running:
            return TimerPhase.RUNNING
        if self._state.is_finished():
            return TimerPhase.FINISHED
        if self._can_reset:
            return TimerPhase.PAUSED
        return TimerPhase.IDLE

    def is_finished(self) -> bool:
        return self._state.is_finished()

    # -- transitions ---------------------------------------------------------

    def start(self) -> None:
        """Start counting down.  Does nothing when finished or already running."""
        if self._state.is_finished() or self._running:
            return
        self._running = True
        self._can_reset = True
        log.debug("Timer %s started at %s", self._id, self.get_display())
        self._notify_state_changed()

    def pause(self) -> None:
        """Stop counting down, keeping the remaining time and the reset flag."""
        if not self._running:
            return
        self._running = False
        log.debug("Timer %s paused at %s", self._id, self.get_display())
        self._notify_state_changed()

    def toggle(self) -> None:
        if not self._running and not self._state.is_finished():
            self.start()
        else:
            self.pause()

    def stop(self) -> None:
        """Stop without touching the remaining time; clears the reset flag."""
        if not self._running and not self._can_reset:
            return
        self._running = False
        self._can_reset = False
        log.debug("Timer %s stopped at %s", self._id, self.get_display())
        self._notify_state_changed()

    def reset(self) -> None:
        """Stop and restore the countdown to its initial value."""
        if not self._running and not self._can_reset and self._state.is_at_initial_value():
            return
        self._running = False
        self._can_reset = False
        self._state.reset()
        log.debug("Timer %s reset to %s", self._id, self.get_display())
        self._notify_state_changed()

    def decrement(self) -> None:
        """Advance a running countdown by one second.

        Reaching zero stops the coordinator, credits the linked subject with
        the initial duration, and fires ``on_finished`` after
        ``on_state_changed``.
        """
        if not self._running:
            return
        self._state.decrement()
        finished = self._state.is_finished()
        if finished:
            self._running = False
            self._can_reset = True
            log.info("Timer %s finished", self._id)
            self._credit_subject()
        self._notify_state_changed()
        if finished and self.on_finished is not None:
            self.on_finished()

    def reconfigure(
        self,
        hours: int,
        minutes: int,
        seconds: int,
        kind: TimerKind = TimerKind.FREE_SESSION,
        linked_subject_id: str | None = None,
    ) -> None:
        """Replace the countdown with a new baseline and go back to idle.

        Raises :class:`~onyx.core.time_value.InvalidDurationError` for
        negative components; the current countdown is left untouched then.
        """
        duration = TimeValue.normalize(hours, minutes, seconds)
        self._state = TimerState(duration, kind, linked_subject_id)
        self._running = False
        self._can_reset = False
        log.debug("Timer %s reconfigured to %s (%s)", self._id, self.get_display(), kind.value)
        self._notify_state_changed()

    def get_display(self) -> str:
        return format_compact(self._state.current)

    def dispose(self) -> None:
        """Drop observers so a removed coordinator no longer notifies anyone."""
        self._running = False
        self.on_state_changed = None
        self.on_finished = None

    # -- private helpers -----------------------------------------------------

    def _credit_subject(self) -> None:
        """Add the configured duration to the linked subject, best effort."""
        subject_id = self._state.linked_subject_id
        if subject_id is None or self._subject_store is None:
            return
        subject = self._subject_store.find_by_id(subject_id)
        if subject is None:
            log.warning("Timer %s finished but subject %s no longer exists", self._id, subject_id)
            return
        session = self._state.initial.to_timedelta()
        subject.add_time_spent(session)
        try:
            self._subject_store.save(subject)
        except PersistenceError as exc:
            log.warning("Could not save time credit for subject %s: %s", subject.name, exc)
            return
        log.info("Credited %s to subject %s", session, subject.name)

    def _notify_state_changed(self) -> None:
        if self.on_state_changed is not None:
            self.on_state_changed()

    def __repr__(self) -> str:
        return f"TimerCoordinator(id={self._id!r}, phase={self.phase.value}, display={self.get_display()!r})"
