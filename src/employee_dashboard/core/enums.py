from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Vai trò người dùng dùng cho phân quyền."""

    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


# Higher number = more privileges
ROLE_HIERARCHY = {
    Role.ADMIN: 3,
    Role.MANAGER: 2,
    Role.EMPLOYEE: 1,
}


class EmployeeStatus(str, Enum):
    """Trạng thái làm việc của nhân viên."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    LAYOFF = "LAYOFF"
    TERMINATED = "TERMINATED"
    ON_LEAVE = "ON_LEAVE"
    SUSPENDED = "SUSPENDED"


class AttendanceStatus(str, Enum):
    """Trạng thái chấm công chuẩn hoá lưu trong CSDL."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half-day"
    EARLY_LEAVE = "earlyLeave"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Terminal states cannot be left once reached
TASK_TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED})


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ReportPeriod(str, Enum):
    """Khoảng thời gian báo cáo."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class Granularity(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
