from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ..model import AttendancePolicy


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_check_in(self, *, now: datetime, today: date, policy: AttendancePolicy) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_check_out(self, *, now: datetime, today: date, policy: AttendancePolicy) -> StatusDecision:
        raise NotImplementedError


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)
