from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, TaskPriority, TaskStatus


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model phục vụ báo cáo/xuất file (tối ưu cho truy vấn)."""

    user_id: int
    name: str
    email: str
    employee_code: Optional[str]
    position: Optional[str]
    department: Optional[str]
    work_date: date
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    total_hours: Optional[float]
    status: AttendanceStatus
    notes: Optional[str] = None


@dataclass(frozen=True)
class TaskReportRow:
    task_id: int
    title: str
    status: TaskStatus
    priority: TaskPriority
    created_at: datetime
    updated_at: datetime
    due_date: Optional[datetime] = None
    assignee_id: Optional[int] = None
    assignee_name: Optional[str] = None
    assignee_email: Optional[str] = None
    creator_name: Optional[str] = None
    department: Optional[str] = None


@dataclass(frozen=True)
class EmployeeReportRow:
    employee_code: str
    name: str
    email: str
    role: str
    position: str
    department: Optional[str]
    manager: Optional[str]
    status: str
    hire_date: date
    salary: Optional[float]
    is_active: bool


@dataclass(frozen=True)
class PerformanceEmployeeRow:
    """Active employee as seen by the performance reports."""

    user_id: int
    employee_code: str
    name: str
    email: str
    position: Optional[str]
    department: Optional[str]


@dataclass(frozen=True)
class RecentAttendanceRow:
    attendance_id: int
    name: str
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class RecentEmployeeRow:
    employee_pk: int
    name: str
    created_at: datetime
