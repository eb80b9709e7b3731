"""Shared fixtures: in-memory stores standing in for the JSON files."""

from __future__ import annotations

from datetime import timedelta

import pytest

from onyx.core.store import PersistenceError, TimerRecord
from onyx.core.subject import Subject


class InMemoryTimerStore:
    """A TimerStore that keeps records in a dict and can be told to fail."""

    def __init__(self, records: list[TimerRecord] | None = None) -> None:
        self.records: dict[str, TimerRecord] = {r.id: r for r in records or []}
        self.save_calls = 0
        self.fail_writes = False

    def save(self, record: TimerRecord) -> TimerRecord:
        self.save_calls += 1
        if self.fail_writes:
            raise PersistenceError("disk full")
        self.records[record.id] = record
        return record

    def find_by_id(self, record_id: str) -> TimerRecord | None:
        return self.records.get(record_id)

    def find_all(self) -> list[TimerRecord]:
        return list(self.records.values())

    def delete_by_id(self, record_id: str) -> None:
        if self.fail_writes:
            raise PersistenceError("disk full")
        self.records.pop(record_id, None)


class InMemorySubjectStore:
    def __init__(self, subjects: list[Subject] | None = None) -> None:
        self.subjects: dict[str, Subject] = {s.id: s for s in subjects or []}
        self.fail_writes = False

    def save(self, subject: Subject) -> Subject:
        if self.fail_writes:
            raise PersistenceError("disk full")
        self.subjects[subject.id] = subject
        return subject

    def find_by_id(self, record_id: str) -> Subject | None:
        return self.subjects.get(record_id)

    def find_all(self) -> list[Subject]:
        return list(self.subjects.values())

    def delete_by_id(self, record_id: str) -> None:
        self.subjects.pop(record_id, None)


@pytest.fixture()
def subject() -> Subject:
    """A two-hour target subject with nothing studied yet."""
    return Subject(
        id="subject-1",
        name="Algebra",
        target_time=timedelta(hours=2),
        default_timer_duration=timedelta(minutes=25),
    )


@pytest.fixture()
def subject_store(subject: Subject) -> InMemorySubjectStore:
    return InMemorySubjectStore([subject])


@pytest.fixture()
def timer_store() -> InMemoryTimerStore:
    return InMemoryTimerStore()
