from __future__ import annotations

from datetime import date, datetime
from typing import Protocol

from ..core.enums import Direction, Population
from .model import AttendanceOutcome, CommitResult


class AttendanceLedger(Protocol):
    """Persistence boundary for attendance outcomes.

    Implementations own the uniqueness constraint; `has_record` is only a
    pre-check and `commit` must report CONFLICT when it loses a race.
    """

    def has_record(self, population: Population, person_id: int, work_date: date, direction: Direction) -> bool:
        raise NotImplementedError

    def commit(self, outcome: AttendanceOutcome) -> CommitResult:
        raise NotImplementedError

    def mark_absent(self, population: Population, work_date: date, recorded_at: datetime) -> int:
        """Record `absent` for active roster members with no record that day; return how many."""
        raise NotImplementedError

    def is_marked_absent(self, population: Population, person_id: int, work_date: date) -> bool:
        raise NotImplementedError
