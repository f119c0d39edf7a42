from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional, Protocol, Sequence

from .model import (
    AttendanceReportRow,
    EmployeeReportRow,
    PerformanceEmployeeRow,
    RecentAttendanceRow,
    RecentEmployeeRow,
    TaskReportRow,
)


class ReportRepository(Protocol):
    def get_attendance_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        department: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError

    def get_task_rows(self, *, start: datetime, end: datetime) -> Sequence[TaskReportRow]:
        """Active tasks created within [start, end]."""

        raise NotImplementedError

    def get_employee_rows(self, *, include_inactive: bool = False) -> Sequence[EmployeeReportRow]:
        raise NotImplementedError

    def count_active_employees(self) -> int:
        raise NotImplementedError

    def task_status_counts(self, *, assignee_id: Optional[int] = None) -> Dict[str, int]:
        raise NotImplementedError

    def department_names(self) -> List[str]:
        raise NotImplementedError

    def get_performance_employees(self, *, department: Optional[str] = None) -> Sequence[PerformanceEmployeeRow]:
        raise NotImplementedError

    def get_recent_attendance(self, limit: int) -> Sequence[RecentAttendanceRow]:
        """Newest rows first, by creation time."""

        raise NotImplementedError

    def get_recent_task_rows(self, limit: int) -> Sequence[TaskReportRow]:
        """Most recently updated active tasks first."""

        raise NotImplementedError

    def get_recent_employees(self, limit: int) -> Sequence[RecentEmployeeRow]:
        raise NotImplementedError
