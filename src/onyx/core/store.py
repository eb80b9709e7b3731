"""Persistence collaborators — key-addressed timer and subject stores.

The JSON stores keep their records in memory and rewrite the whole file
after every mutation, holding an ``fcntl`` lock while the file is open.
"""

from __future__ import annotations

import fcntl
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Generic, Protocol, TypeVar

from onyx.core.subject import Subject
from onyx.core.time_value import TimeValue
from onyx.core.timer_state import TimerKind, TimerState

log = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "onyx"
TIMERS_FILE = "timers.json"
SUBJECTS_FILE = "subjects.json"


class PersistenceError(Exception):
    """Raised when a store cannot write its backing file."""


def _int_field(data: dict[str, Any], key: str) -> int:
    """Return the integer stored under *key* (0 when absent)."""
    value = data.get(key, 0)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"field {key!r} must be an integer, got {value!r}")
    return value


@dataclass(frozen=True)
class TimerRecord:
    """The persisted form of one timer's countdown state."""

    id: str
    current: TimeValue
    initial: TimeValue
    kind: TimerKind = TimerKind.FREE_SESSION
    linked_subject_id: str | None = None

    @classmethod
    def from_state(cls, timer_id: str, state: TimerState) -> TimerRecord:
        return cls(
            id=timer_id,
            current=state.current,
            initial=state.initial,
            kind=state.kind,
            linked_subject_id=state.linked_subject_id,
        )

    def to_state(self) -> TimerState:
        return TimerState(
            initial=self.initial,
            kind=self.kind,
            linked_subject_id=self.linked_subject_id,
            current=self.current,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "hours": self.current.hours,
            "minutes": self.current.minutes,
            "seconds": self.current.seconds,
            "init_hours": self.initial.hours,
            "init_minutes": self.initial.minutes,
            "init_seconds": self.initial.seconds,
            "timer_type": self.kind.value,
            "linked_subject_id": self.linked_subject_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimerRecord:
        """Build a record from its JSON form.

        Older files have no ``init_*`` fields; the current value then
        doubles as the initial one.  A free session never keeps a link.
        """
        current = TimeValue.normalize(
            _int_field(data, "hours"), _int_field(data, "minutes"), _int_field(data, "seconds")
        )
        if all(key in data for key in ("init_hours", "init_minutes", "init_seconds")):
            initial = TimeValue.normalize(
                _int_field(data, "init_hours"),
                _int_field(data, "init_minutes"),
                _int_field(data, "init_seconds"),
            )
        else:
            initial = current
        kind = TimerKind.from_tag(data.get("timer_type"))
        linked = data.get("linked_subject_id") if kind == TimerKind.STUDY_SESSION else None
        return cls(
            id=data["id"],
            current=current,
            initial=initial,
            kind=kind,
            linked_subject_id=linked,
        )


class TimerStore(Protocol):
    def save(self, record: TimerRecord) -> TimerRecord: ...

    def find_by_id(self, record_id: str) -> TimerRecord | None: ...

    def find_all(self) -> list[TimerRecord]: ...

    def delete_by_id(self, record_id: str) -> None: ...


class SubjectStore(Protocol):
    def save(self, subject: Subject) -> Subject: ...

    def find_by_id(self, record_id: str) -> Subject | None: ...

    def find_all(self) -> list[Subject]: ...

    def delete_by_id(self, record_id: str) -> None: ...


T = TypeVar("T", TimerRecord, Subject)


class _JsonStore(Generic[T]):
    """Upsert-by-id list of records backed by one JSON file."""

    def __init__(
        self,
        filename: str,
        to_dict: Callable[[T], dict[str, Any]],
        from_dict: Callable[[dict[str, Any]], T],
        config_dir: Path | None = None,
    ) -> None:
        self._config_dir: Path = config_dir if config_dir is not None else DEFAULT_CONFIG_DIR
        self._path: Path = self._config_dir / filename
        self._to_dict = to_dict
        self._from_dict = from_dict
        self._records: list[T] = []
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    # -- public API ----------------------------------------------------------

    def save(self, record: T) -> T:
        """Insert *record*, or replace the stored record with the same id."""
        for index, existing in enumerate(self._records):
            if existing.id == record.id:
                self._records[index] = record
                break
        else:
            self._records.append(record)
        self._write()
        return record

    def find_by_id(self, record_id: str) -> T | None:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def find_all(self) -> list[T]:
        return list(self._records)

    def delete_by_id(self, record_id: str) -> None:
        self._records = [r for r in self._records if r.id != record_id]
        self._write()

    # -- persistence ---------------------------------------------------------

    def _write(self) -> None:
        """Rewrite the JSON file with file locking."""
        try:
            self._config_dir.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_EX)
                json.dump([self._to_dict(r) for r in self._records], f, indent=2)
        except OSError as exc:
            raise PersistenceError(f"could not write {self._path}: {exc}") from exc
        log.debug("Wrote %d record(s) to %s", len(self._records), self._path)

    def _load(self) -> None:
        """Load records from the JSON file if it exists.

        An unreadable or malformed file leaves the store empty.
        """
        if not self._path.exists() or self._path.stat().st_size == 0:
            return
        try:
            with open(self._path, encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                data = json.load(f)
            if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
                raise ValueError("expected a JSON list of objects")
            self._records = [self._from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            log.error("Could not load records from %s: %s", self._path, exc)
            self._records = []
            return
        log.debug("Loaded %d record(s) from %s", len(self._records), self._path)


class JsonTimerStore(_JsonStore[TimerRecord]):
    """Timer records in ``<config_dir>/timers.json``."""

    def __init__(self, config_dir: Path | None = None) -> None:
        super().__init__(TIMERS_FILE, TimerRecord.to_dict, TimerRecord.from_dict, config_dir)


class JsonSubjectStore(_JsonStore[Subject]):
    """Subjects in ``<config_dir>/subjects.json``."""

    def __init__(self, config_dir: Path | None = None) -> None:
        super().__init__(SUBJECTS_FILE, Subject.to_dict, Subject.from_dict, config_dir)
