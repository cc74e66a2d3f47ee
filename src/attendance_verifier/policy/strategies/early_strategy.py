from __future__ import annotations

from datetime import date, datetime

from ...core.enums import AttendanceStatus
from ..model import AttendancePolicy
from .base import AttendanceStrategy, StatusDecision, minutes_between


class EarlyLeaveStrategy(AttendanceStrategy):
    """Check-out before the end of the school day."""

    def decide_check_in(self, *, now: datetime, today: date, policy: AttendancePolicy) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_check_out(self, *, now: datetime, today: date, policy: AttendancePolicy) -> StatusDecision:
        early_by = minutes_between(now, datetime.combine(today, policy.end_time))
        return StatusDecision(status=AttendanceStatus.LEFT_EARLY, note=f"Left {early_by} min early")
