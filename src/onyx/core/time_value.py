"""TimeValue — an hours/minutes/seconds duration with carry and saturation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta

MAX_HOURS = 99
MAX_MINUTES = 59
MAX_SECONDS = 59

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600

_TIME_TEXT_PATTERN = re.compile(r"^(\d{2}):(\d{2}):(\d{2})$")


class InvalidDurationError(ValueError):
    """Raised when a duration is built from negative components."""


@dataclass(frozen=True)
class TimeValue:
    """An immutable duration whose components are always in their legal range.

    Build instances with :meth:`normalize`, which carries overflowing units
    upward and saturates at ``99:59:59``.  The plain constructor only checks
    the ranges.
    """

    hours: int = 0
    minutes: int = 0
    seconds: int = 0

    def __post_init__(self) -> None:
        if self.hours < 0 or self.minutes < 0 or self.seconds < 0:
            raise InvalidDurationError(
                f"negative time not allowed: {self.hours}h {self.minutes}m {self.seconds}s"
            )
        if self.hours > MAX_HOURS or self.minutes > MAX_MINUTES or self.seconds > MAX_SECONDS:
            raise InvalidDurationError(
                f"time out of range: {self.hours}h {self.minutes}m {self.seconds}s "
                "(use TimeValue.normalize for overflowing input)"
            )

    # -- construction --------------------------------------------------------

    @classmethod
    def normalize(cls, hours: int = 0, minutes: int = 0, seconds: int = 0) -> TimeValue:
        """Build a TimeValue from raw, possibly overflowing, components.

        Seconds above 59 carry into minutes and minutes above 59 carry into
        hours.  If the carried hours exceed 99 the result saturates to
        ``99:59:59``.  Negative components raise :class:`InvalidDurationError`.
        """
        if hours < 0 or minutes < 0 or seconds < 0:
            raise InvalidDurationError(
                f"negative time not allowed: {hours}h {minutes}m {seconds}s"
            )
        minutes += seconds // SECONDS_PER_MINUTE
        seconds %= SECONDS_PER_MINUTE
        hours += minutes // 60
        minutes %= 60
        if hours > MAX_HOURS:
            return cls(MAX_HOURS, MAX_MINUTES, MAX_SECONDS)
        return cls(hours, minutes, seconds)

    @classmethod
    def from_total_seconds(cls, total: int) -> TimeValue:
        return cls.normalize(seconds=total)

    @classmethod
    def from_timedelta(cls, delta: timedelta) -> TimeValue:
        return cls.normalize(seconds=int(delta.total_seconds()))

    # -- queries -------------------------------------------------------------

    def to_total_seconds(self) -> int:
        return self.hours * SECONDS_PER_HOUR + self.minutes * SECONDS_PER_MINUTE + self.seconds

    def to_timedelta(self) -> timedelta:
        return timedelta(seconds=self.to_total_seconds())

    def is_zero(self) -> bool:
        return self.hours == 0 and self.minutes == 0 and self.seconds == 0


ZERO = TimeValue(0, 0, 0)
DEFAULT_DURATION = TimeValue(0, 3, 5)


def format_compact(value: TimeValue) -> str:
    """Format *value* compactly: ``HH:MM:SS``, ``MM:SS`` or bare seconds.

    Hours are only shown when non-zero, and minutes only when hours or
    minutes are non-zero, so ``00:00:07`` renders as ``7``.
    """
    if value.hours > 0:
        return f"{value.hours:02d}:{value.minutes:02d}:{value.seconds:02d}"
    if value.minutes > 0:
        return f"{value.minutes:02d}:{value.seconds:02d}"
    return f"{value.seconds:d}"


def format_full(value: TimeValue) -> str:
    """Format *value* as fixed-width ``HH:MM:SS``."""
    return f"{value.hours:02d}:{value.minutes:02d}:{value.seconds:02d}"


def parse_time_text(text: str | None) -> TimeValue | None:
    """Parse ``HH:MM:SS`` text, clamping each field into its legal range.

    Returns ``None`` when *text* does not have the ``HH:MM:SS`` shape.
    """
    if text is None:
        return None
    match = _TIME_TEXT_PATTERN.match(text.strip())
    if match is None:
        return None
    hours, minutes, seconds = (int(part) for part in match.groups())
    return TimeValue(
        min(hours, MAX_HOURS),
        min(minutes, MAX_MINUTES),
        min(seconds, MAX_SECONDS),
    )
