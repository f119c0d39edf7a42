from __future__ import annotations

from dataclasses import dataclass
from datetime import time

from ..core.constants import (
    DEFAULT_EARLY_DEPARTURE_GRACE_MINUTES,
    DEFAULT_LATE_GRACE_MINUTES,
    DEFAULT_OVERTIME_THRESHOLD_HOURS,
)


@dataclass(frozen=True)
class WorkingHours:
    """Khung giờ làm việc của công ty dùng cho chấm công."""

    start: time = time(8, 0)
    end: time = time(17, 0)
    late_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES
    early_grace_minutes: int = DEFAULT_EARLY_DEPARTURE_GRACE_MINUTES
    overtime_threshold_hours: int = DEFAULT_OVERTIME_THRESHOLD_HOURS
