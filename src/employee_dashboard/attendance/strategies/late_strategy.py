from __future__ import annotations

from datetime import date, datetime

from ...core.enums import AttendanceStatus
from ...settings.model import WorkingHours
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in."""

    def decide_checkin(self, *, now: datetime, today: date, hours: WorkingHours) -> StatusDecision:
        minutes_late = int((now - datetime.combine(today, hours.start)).total_seconds() // 60)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Late by {minutes_late} minutes")

    def decide_checkout(
        self, *, now: datetime, today: date, hours: WorkingHours, current: AttendanceStatus
    ) -> StatusDecision:
        return StatusDecision(status=current)
