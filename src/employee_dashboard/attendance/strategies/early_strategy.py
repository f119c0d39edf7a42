from __future__ import annotations

from datetime import date, datetime

from ...core.enums import AttendanceStatus
from ...settings.model import WorkingHours
from .base import AttendanceStrategy, StatusDecision


class EarlyLeaveStrategy(AttendanceStrategy):
    """Early leave on checkout (only when check-in was on time)."""

    def decide_checkin(self, *, now: datetime, today: date, hours: WorkingHours) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_checkout(
        self, *, now: datetime, today: date, hours: WorkingHours, current: AttendanceStatus
    ) -> StatusDecision:
        minutes_early = int((datetime.combine(today, hours.end) - now).total_seconds() // 60)
        return StatusDecision(status=AttendanceStatus.EARLY_LEAVE, note=f"Left {minutes_early} minutes early")
