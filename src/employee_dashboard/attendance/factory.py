from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from ..core.enums import AttendanceStatus
from ..settings.model import WorkingHours
from .strategies.base import AttendanceStrategy
from .strategies.early_strategy import EarlyLeaveStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime, today: date, hours: WorkingHours) -> AttendanceStrategy:
        start = datetime.combine(today, hours.start)
        if now <= start + timedelta(minutes=hours.late_grace_minutes):
            return NormalStrategy()
        return LateStrategy()

    def for_checkout(
        self, *, now: datetime, today: date, hours: WorkingHours, current_status: AttendanceStatus
    ) -> AttendanceStrategy:
        end = datetime.combine(today, hours.end)
        if now < end - timedelta(minutes=hours.early_grace_minutes) and current_status == AttendanceStatus.PRESENT:
            return EarlyLeaveStrategy()
        return NormalStrategy()
