from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Protocol, Sequence, Tuple

from ..api.context import Pagination, SearchParams
from ..core.enums import AttendanceStatus
from ..database.models import Attendance
from .model import AttendanceRecord, EmployeeSnapshot


class AttendanceRepository(Protocol):
    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_employee_snapshot(self, user_id: int) -> Optional[EmployeeSnapshot]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: int,
        employee_id: Optional[int],
        work_date: date,
        check_in: datetime,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out: datetime,
        total_hours: float,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def search(
        self,
        *,
        search: SearchParams,
        pagination: Pagination,
        start: Optional[str] = None,
        end: Optional[str] = None,
        user_id: Optional[int] = None,
        status: Optional[AttendanceStatus] = None,
        department: Optional[str] = None,
    ) -> Tuple[List[Attendance], int]:
        raise NotImplementedError

    def department_names(self) -> List[str]:
        raise NotImplementedError
