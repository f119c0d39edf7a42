from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, EmployeeStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Thực thể miền (domain): Bản ghi chấm công."""

    attendance_id: int
    user_id: int
    employee_id: Optional[int]
    work_date: date
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    status: AttendanceStatus
    total_hours: Optional[float] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "userId": self.user_id,
            "date": self.work_date.isoformat(),
            "checkIn": self.check_in.isoformat() if self.check_in else None,
            "checkOut": self.check_out.isoformat() if self.check_out else None,
            "totalHours": self.total_hours,
            "status": self.status.value,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class EmployeeSnapshot:
    """The bits of an employee row check-in/out decisions need."""

    employee_id: int
    user_id: int
    name: str
    is_active: bool
    status: EmployeeStatus
    manager_user_id: Optional[int] = None
