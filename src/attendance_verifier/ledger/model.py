from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from ..core.enums import AttendanceStatus, Direction, Population, VerificationMethod
from ..policy.model import Location


class CommitResult(str, Enum):
    ACK = "ack"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class AttendanceOutcome:
    """Domain entity: one verified check-in or check-out.

    The ledger keeps at most one per (population, person, work_date, direction).
    """

    person_id: int
    population: Population
    work_date: date
    direction: Direction
    timestamp: datetime
    status: AttendanceStatus
    method: VerificationMethod
    confidence: Optional[float] = None
    distance_meters: Optional[float] = None
    location: Optional[Location] = None
    note: Optional[str] = None
