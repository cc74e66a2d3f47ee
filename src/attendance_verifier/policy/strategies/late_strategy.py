from __future__ import annotations

from datetime import date, datetime

from ...core.enums import AttendanceStatus
from ..model import AttendancePolicy
from .base import AttendanceStrategy, StatusDecision, minutes_between


class LateStrategy(AttendanceStrategy):
    """Check-in after start time plus the late threshold."""

    def decide_check_in(self, *, now: datetime, today: date, policy: AttendancePolicy) -> StatusDecision:
        late_by = minutes_between(datetime.combine(today, policy.start_time), now)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Late by {late_by} min")

    def decide_check_out(self, *, now: datetime, today: date, policy: AttendancePolicy) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
