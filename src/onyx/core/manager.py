"""Timers manager — owns every coordinator and keeps the store in sync."""

from __future__ import annotations

import logging

from onyx.core.coordinator import Callback, TimerCoordinator
from onyx.core.store import PersistenceError, SubjectStore, TimerRecord, TimerStore
from onyx.core.time_value import DEFAULT_DURATION, TimeValue
from onyx.core.timer_state import TimerKind

log = logging.getLogger(__name__)


class TimerNotFoundError(KeyError):
    """Raised when no managed timer has the requested id."""

    def __str__(self) -> str:
        return f"no timer matches {self.args[0]!r}"


class TimersManager:
    """Owns the collection of timers and the derived set of active ones.

    A timer is *active* while it is running or has time left.  The active
    set is recomputed right after every change to any member.  Every change
    is written through to the timer store; store failures are logged and
    never undo the in-memory change.
    """

    def __init__(self, timer_store: TimerStore, subject_store: SubjectStore | None = None) -> None:
        self._timer_store = timer_store
        self._subject_store = subject_store
        self._timers: dict[str, TimerCoordinator] = {}
        self._active: dict[str, TimerCoordinator] = {}
        self.on_timers_list_changed: Callback | None = None
        self.on_active_timers_changed: Callback | None = None
        self._load()

    # -- creation and removal ------------------------------------------------

    def create_timer(
        self,
        duration: TimeValue | None = None,
        kind: TimerKind = TimerKind.FREE_SESSION,
        linked_subject_id: str | None = None,
    ) -> TimerCoordinator:
        """Create, persist and return a new idle timer.

        Without a *duration*, a study timer uses its subject's default timer
        duration and anything else uses ``DEFAULT_DURATION``.
        """
        if duration is None:
            duration = self._default_duration(linked_subject_id)
        coordinator = TimerCoordinator.create(duration, kind, linked_subject_id, self._subject_store)
        self._adopt(coordinator)
        self._persist(coordinator)
        log.info("Created %s timer %s for %s", kind.value, coordinator.id, coordinator.get_display())
        self._update_active_timers()
        self._notify_timers_list_changed()
        return coordinator

    def remove_timer(self, coordinator: TimerCoordinator) -> None:
        """Dispose of *coordinator* and delete its record.  Unknown timers are ignored."""
        if self._timers.pop(coordinator.id, None) is None:
            return
        coordinator.dispose()
        self._delete(coordinator.id)
        log.info("Removed timer %s", coordinator.id)
        self._update_active_timers()
        self._notify_timers_list_changed()

    def remove_all_timers(self) -> None:
        for coordinator in list(self._timers.values()):
            coordinator.dispose()
            self._delete(coordinator.id)
        log.info("Removed all %d timer(s)", len(self._timers))
        self._timers.clear()
        self._active.clear()
        self._notify_timers_list_changed()
        self._notify_active_timers_changed()

    # -- bulk operations -----------------------------------------------------

    def pause_all_timers(self) -> None:
        for coordinator in list(self._timers.values()):
            if coordinator.running:
                coordinator.pause()

    def stop_all_timers(self) -> None:
        for coordinator in list(self._timers.values()):
            coordinator.stop()
        self._update_active_timers()

    def tick(self) -> None:
        """Advance every running timer by one second."""
        for coordinator in list(self._timers.values()):
            if coordinator.running:
                coordinator.decrement()

    # -- queries -------------------------------------------------------------

    def get_timer(self, timer_id: str) -> TimerCoordinator:
        try:
            return self._timers[timer_id]
        except KeyError:
            raise TimerNotFoundError(timer_id) from None

    def get_all_timers(self) -> list[TimerCoordinator]:
        return list(self._timers.values())

    def get_active_timers(self) -> list[TimerCoordinator]:
        return list(self._active.values())

    def get_timers_count(self) -> int:
        return len(self._timers)

    def get_active_timers_count(self) -> int:
        return len(self._active)

    def get_running_timers_count(self) -> int:
        return sum(1 for coordinator in self._timers.values() if coordinator.running)

    def has_running_timers(self) -> bool:
        return self.get_running_timers_count() > 0

    # -- private helpers -----------------------------------------------------

    def _load(self) -> None:
        """Wrap every persisted record in a fresh, idle coordinator."""
        for record in self._timer_store.find_all():
            coordinator = TimerCoordinator(record.to_state(), self._subject_store, timer_id=record.id)
            self._adopt(coordinator)
        log.debug("Loaded %d timer(s) from the store", len(self._timers))
        self._update_active_timers()

    def _adopt(self, coordinator: TimerCoordinator) -> None:
        coordinator.on_state_changed = lambda: self._on_member_changed(coordinator)
        coordinator.on_finished = self._on_member_finished
        self._timers[coordinator.id] = coordinator

    def _on_member_changed(self, coordinator: TimerCoordinator) -> None:
        self._update_active_timers()
        self._notify_timers_list_changed()
        self._persist(coordinator)

    def _on_member_finished(self) -> None:
        # The finishing state was already written by on_state_changed.
        self._update_active_timers()
        self._notify_timers_list_changed()

    def _default_duration(self, linked_subject_id: str | None) -> TimeValue:
        if linked_subject_id is not None and self._subject_store is not None:
            subject = self._subject_store.find_by_id(linked_subject_id)
            if subject is not None:
                return TimeValue.from_timedelta(subject.default_timer_duration)
        return DEFAULT_DURATION

    def _persist(self, coordinator: TimerCoordinator) -> None:
        try:
            self._timer_store.save(TimerRecord.from_state(coordinator.id, coordinator.state))
        except PersistenceError as exc:
            log.warning("Could not persist timer %s: %s", coordinator.id, exc)

    def _delete(self, timer_id: str) -> None:
        try:
            self._timer_store.delete_by_id(timer_id)
        except PersistenceError as exc:
            log.warning("Could not delete timer %s from the store: %s", timer_id, exc)

    def _update_active_timers(self) -> None:
        self._active = {
            timer_id: coordinator
            for timer_id, coordinator in self._timers.items()
            if coordinator.running or not coordinator.is_finished()
        }
        self._notify_active_timers_changed()

    def _notify_timers_list_changed(self) -> None:
        if self.on_timers_list_changed is not None:
            self.on_timers_list_changed()

    def _notify_active_timers_changed(self) -> None:
        if self.on_active_timers_changed is not None:
            self.on_active_timers_changed()
