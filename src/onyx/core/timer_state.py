"""Countdown state for a single timer — pure value logic, no I/O."""

from __future__ import annotations

from enum import Enum

from onyx.core.time_value import MAX_MINUTES, MAX_SECONDS, TimeValue


class TimerKind(Enum):
    """Whether a timer stands alone or counts toward a study subject."""

    FREE_SESSION = "FREE_SESSION"
    STUDY_SESSION = "STUDY_SESSION"

    @classmethod
    def from_tag(cls, tag: str | None) -> TimerKind:
        """Return the kind serialized as *tag*; unknown tags read as a free session."""
        for kind in cls:
            if kind.value == tag:
                return kind
        return cls.FREE_SESSION


class TimerState:
    """The live countdown of one timer.

    ``initial`` is the baseline configured at construction and restored by
    :meth:`reset`.  ``current`` moves toward zero one second per
    :meth:`decrement` and never goes below it.
    """

    def __init__(
        self,
        initial: TimeValue,
        kind: TimerKind = TimerKind.FREE_SESSION,
        linked_subject_id: str | None = None,
        current: TimeValue | None = None,
    ) -> None:
        if kind == TimerKind.FREE_SESSION and linked_subject_id is not None:
            raise ValueError("a free session cannot be linked to a subject")
        self._initial: TimeValue = initial
        self._current: TimeValue = current if current is not None else initial
        self._kind: TimerKind = kind
        self._linked_subject_id: str | None = linked_subject_id

    # -- properties ----------------------------------------------------------

    @property
    def initial(self) -> TimeValue:
        return self._initial

    @property
    def current(self) -> TimeValue:
        return self._current

    @property
    def kind(self) -> TimerKind:
        return self._kind

    @property
    def linked_subject_id(self) -> str | None:
        return self._linked_subject_id

    # -- countdown -----------------------------------------------------------

    def decrement(self) -> None:
        """Remove one second from ``current``, borrowing from larger units.

        A no-op when ``current`` is already zero.
        """
        hours, minutes, seconds = self._current.hours, self._current.minutes, self._current.seconds
        if hours == 0 and minutes == 0 and seconds == 0:
            return
        if seconds > 0:
            seconds -= 1
        elif minutes > 0:
            seconds = MAX_SECONDS
            minutes -= 1
        else:
            seconds = MAX_SECONDS
            minutes = MAX_MINUTES
            hours -= 1
        self._current = TimeValue(hours, minutes, seconds)

    def reset(self) -> None:
        """Restore ``current`` to the initial baseline."""
        self._current = self._initial

    def is_finished(self) -> bool:
        return self._current.is_zero()

    def is_at_initial_value(self) -> bool:
        return self._current == self._initial

    def __repr__(self) -> str:
        return (
            f"TimerState(current={self._current!r}, initial={self._initial!r}, "
            f"kind={self._kind.value}, linked_subject_id={self._linked_subject_id!r})"
        )
