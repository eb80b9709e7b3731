"""Study subjects (courses) that accumulate time from finished study timers."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

_DURATION_PATTERN = re.compile(r"^(\d*)h(\d*)$")


class SubjectStatus(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def parse_duration(text: str) -> timedelta:
    """Parse ``"25"`` (minutes), ``"1h30"`` or ``"2h"`` into a timedelta.

    Raises ``ValueError`` for anything else.
    """
    cleaned = text.strip().lower()
    if cleaned.isdigit():
        return timedelta(minutes=int(cleaned))
    match = _DURATION_PATTERN.match(cleaned)
    if match is None or cleaned == "h":
        raise ValueError(f"invalid duration {text!r}, expected e.g. '25' or '1h30'")
    hours, minutes = match.groups()
    return timedelta(hours=int(hours or 0), minutes=int(minutes or 0))


def _format_hours_minutes(duration: timedelta) -> str:
    total = int(duration.total_seconds())
    return f"{total // 3600}h{(total % 3600) // 60:02d}"


@dataclass
class Subject:
    """A tracked course with a target study time and the time spent so far."""

    name: str
    target_time: timedelta
    default_timer_duration: timedelta = timedelta(minutes=25)
    time_spent: timedelta = timedelta(0)
    last_study_date: datetime | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def add_time_spent(self, duration: timedelta) -> None:
        """Credit *duration* to this subject and stamp the study date."""
        self.time_spent += duration
        self.last_study_date = datetime.now().astimezone()

    @property
    def status(self) -> SubjectStatus:
        if self.time_spent >= self.target_time and self.time_spent > timedelta(0):
            return SubjectStatus.COMPLETED
        if self.time_spent > timedelta(0):
            return SubjectStatus.IN_PROGRESS
        return SubjectStatus.NOT_STARTED

    def progress_percentage(self) -> str:
        if self.target_time <= timedelta(0):
            return "0%"
        progress = self.time_spent / self.target_time * 100
        return f"{min(progress, 100):.0f}%"

    @property
    def formatted_target_time(self) -> str:
        return _format_hours_minutes(self.target_time)

    @property
    def formatted_time_spent(self) -> str:
        return _format_hours_minutes(self.time_spent)

    # -- serialization -------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "target_seconds": int(self.target_time.total_seconds()),
            "time_spent_seconds": int(self.time_spent.total_seconds()),
            "default_timer_seconds": int(self.default_timer_duration.total_seconds()),
            "last_study_date": (
                self.last_study_date.isoformat() if self.last_study_date is not None else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Subject:
        last_study = data.get("last_study_date")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            target_time=timedelta(seconds=data.get("target_seconds", 0)),
            time_spent=timedelta(seconds=data.get("time_spent_seconds", 0)),
            default_timer_duration=timedelta(seconds=data.get("default_timer_seconds", 25 * 60)),
            last_study_date=datetime.fromisoformat(last_study) if last_study else None,
        )
