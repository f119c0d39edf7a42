"""Employee performance scoring.

Productivity blends attendance (40%) with task completion (60%). Efficiency
compares logged hours with a standard workday for the days actually present.
Trend reports split a date range into daily, weekly (Monday based) or monthly
buckets and score every employee inside each bucket.
"""
from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterable, List, Sequence

from dateutil.relativedelta import relativedelta

from ..common.datetime_utils import week_start
from ..core.constants import STANDARD_WORKDAY_HOURS
from ..core.enums import Granularity, ReportPeriod, TaskStatus
from .model import AttendanceReportRow, PerformanceEmployeeRow, TaskReportRow

ATTENDANCE_WEIGHT = 0.4
TASK_WEIGHT = 0.6

UNASSIGNED_DEPARTMENT = "Unassigned"

_DEFAULT_GRANULARITY = {
    ReportPeriod.WEEK: Granularity.DAILY,
    ReportPeriod.MONTH: Granularity.WEEKLY,
    ReportPeriod.YEAR: Granularity.MONTHLY,
}


def percentage(part: int, total: int) -> int:
    """Integer percentage in [0, 100]; 0 when total is 0."""
    if total <= 0:
        return 0
    return round(part / total * 100)


def productivity_score(attendance_rate: int, task_completion_rate: int) -> int:
    return round(attendance_rate * ATTENDANCE_WEIGHT + task_completion_rate * TASK_WEIGHT)


def efficiency_rate(total_hours: float, present_days: int) -> int:
    if present_days <= 0:
        return 0
    return round(total_hours / (present_days * STANDARD_WORKDAY_HOURS) * 100)


def mean(values: Iterable[int]) -> int:
    values = list(values)
    return round(sum(values) / len(values)) if values else 0


def default_granularity(period: ReportPeriod) -> Granularity:
    return _DEFAULT_GRANULARITY[period]


def is_overdue(task: TaskReportRow, now: datetime) -> bool:
    return (
        task.due_date is not None
        and task.due_date < now
        and task.status not in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)
    )


@dataclass(frozen=True)
class Bucket:
    """Half-open [start, end) slice of a report range."""

    label: str
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days


def make_buckets(start: date, end: date, granularity: Granularity) -> List[Bucket]:
    """Split the inclusive range [start, end] into calendar buckets.

    The first and last buckets are clipped to the range, so a week that began
    before ``start`` only counts its days inside the range.
    """

    if granularity == Granularity.DAILY:
        cursor, step, fmt = start, relativedelta(days=1), "%Y-%m-%d"
    elif granularity == Granularity.WEEKLY:
        cursor, step, fmt = week_start(start), relativedelta(weeks=1), "%Y-%m-%d"
    else:
        cursor, step, fmt = start.replace(day=1), relativedelta(months=1), "%Y-%m"

    stop = end + timedelta(days=1)
    buckets = []
    while cursor < stop:
        following = cursor + step
        buckets.append(Bucket(label=cursor.strftime(fmt), start=max(cursor, start), end=min(following, stop)))
        cursor = following
    return buckets


@dataclass(frozen=True)
class EmployeeScore:
    employee: PerformanceEmployeeRow
    present_days: int
    total_hours: float
    tasks_assigned: int
    tasks_completed: int
    tasks_overdue: int
    attendance_rate: int
    task_completion_rate: int
    productivity_score: int
    efficiency_rate: int

    @property
    def department(self) -> str:
        return self.employee.department or UNASSIGNED_DEPARTMENT

    @property
    def avg_hours_per_day(self) -> float:
        return round(self.total_hours / self.present_days, 1) if self.present_days else 0

    def to_dict(self) -> dict:
        return {
            "employeeId": self.employee.employee_code,
            "name": self.employee.name,
            "email": self.employee.email,
            "department": self.department,
            "position": self.employee.position or "N/A",
            "productivityScore": self.productivity_score,
            "efficiencyRate": self.efficiency_rate,
            "attendanceRate": self.attendance_rate,
            "taskCompletionRate": self.task_completion_rate,
            "attendanceCorrelation": 0,
            "totalHours": round(self.total_hours, 1),
            "avgHoursPerDay": self.avg_hours_per_day,
            "tasksCompleted": self.tasks_completed,
            "tasksAssigned": self.tasks_assigned,
        }


def score_employee(
    employee: PerformanceEmployeeRow,
    attendance: Iterable[AttendanceReportRow],
    tasks: Iterable[TaskReportRow],
    *,
    days: int,
    now: datetime,
) -> EmployeeScore:
    """Score one employee from their own attendance and task rows."""

    present = [r for r in attendance if r.check_in is not None]
    tasks = list(tasks)
    hours = sum(r.total_hours or 0 for r in present)
    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)

    attendance_rate = percentage(len(present), days)
    completion_rate = percentage(completed, len(tasks))
    return EmployeeScore(
        employee=employee,
        present_days=len(present),
        total_hours=hours,
        tasks_assigned=len(tasks),
        tasks_completed=completed,
        tasks_overdue=sum(1 for t in tasks if is_overdue(t, now)),
        attendance_rate=attendance_rate,
        task_completion_rate=completion_rate,
        productivity_score=productivity_score(attendance_rate, completion_rate),
        efficiency_rate=efficiency_rate(hours, len(present)),
    )


def score_all(
    employees: Sequence[PerformanceEmployeeRow],
    attendance: Iterable[AttendanceReportRow],
    tasks: Iterable[TaskReportRow],
    *,
    days: int,
    now: datetime,
) -> List[EmployeeScore]:
    """Score every employee, best first (productivity, then efficiency)."""

    by_user_att: Dict[int, List[AttendanceReportRow]] = {}
    for r in attendance:
        by_user_att.setdefault(r.user_id, []).append(r)
    by_user_tasks: Dict[int, List[TaskReportRow]] = {}
    for t in tasks:
        if t.assignee_id is not None:
            by_user_tasks.setdefault(t.assignee_id, []).append(t)

    scores = [
        score_employee(
            e,
            by_user_att.get(e.user_id, ()),
            by_user_tasks.get(e.user_id, ()),
            days=days,
            now=now,
        )
        for e in employees
    ]
    scores.sort(key=lambda s: (s.productivity_score, s.efficiency_rate), reverse=True)
    return scores


def averages(scores: Sequence[EmployeeScore]) -> dict:
    return {
        "avgProductivityScore": mean(s.productivity_score for s in scores),
        "avgEfficiencyRate": mean(s.efficiency_rate for s in scores),
        "avgAttendanceRate": mean(s.attendance_rate for s in scores),
        "avgTaskCompletionRate": mean(s.task_completion_rate for s in scores),
    }


def comparison_averages(scores: Sequence[EmployeeScore]) -> dict:
    return {
        "productivityScore": mean(s.productivity_score for s in scores),
        "efficiencyRate": mean(s.efficiency_rate for s in scores),
        "attendanceRate": mean(s.attendance_rate for s in scores),
        "taskCompletionRate": mean(s.task_completion_rate for s in scores),
    }


def department_performance(scores: Sequence[EmployeeScore]) -> List[dict]:
    groups: Dict[str, List[EmployeeScore]] = {}
    for s in scores:
        groups.setdefault(s.department, []).append(s)
    return [
        {
            "department": name,
            "totalEmployees": len(members),
            **averages(members),
            "totalHours": round(sum(m.total_hours for m in members), 1),
        }
        for name, members in groups.items()
    ]


def split_by_bucket(rows: Iterable, buckets: Sequence[Bucket], day_of: Callable[[object], date]) -> List[list]:
    """Distribute rows over buckets; rows outside every bucket are dropped."""

    starts = [b.start for b in buckets]
    slots: List[list] = [[] for _ in buckets]
    for row in rows:
        day = day_of(row)
        i = bisect_right(starts, day) - 1
        if i >= 0 and day < buckets[i].end:
            slots[i].append(row)
    return slots
