from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from ..common.datetime_utils import to_minute
from .model import AttendancePolicy
from .strategies.base import AttendanceStrategy
from .strategies.early_strategy import EarlyLeaveStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules.

    Times are compared on the minute; 08:15:59 is still 08:15.
    """

    def for_check_in(self, *, now: datetime, today: date, policy: AttendancePolicy) -> AttendanceStrategy:
        cutoff = datetime.combine(today, policy.start_time) + timedelta(minutes=policy.late_threshold_minutes)
        if to_minute(now) <= cutoff:
            return NormalStrategy()
        return LateStrategy()

    def for_check_out(self, *, now: datetime, today: date, policy: AttendancePolicy) -> AttendanceStrategy:
        school_end = datetime.combine(today, policy.end_time)
        if to_minute(now) < school_end:
            return EarlyLeaveStrategy()
        return NormalStrategy()
