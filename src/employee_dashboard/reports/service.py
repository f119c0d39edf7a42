"""Reporting and aggregation.

Every report here is a pure regrouping of read-model rows fetched once from
the repository: counts per status, per department, per assignee, and
time-bucketed trends.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence

from ..auth.model import SessionUser
from ..cache.tag_cache import CacheTag, TaggedCache
from ..common.datetime_utils import period_range, time_ago, week_start
from ..core.constants import (
    CACHE_TTL_LONG,
    CACHE_TTL_MEDIUM,
    CACHE_TTL_SHORT,
    RECENT_ACTIVITY_LIMIT,
    TOP_PERFORMERS_LIMIT,
)
from ..core.enums import AttendanceStatus, Granularity, ReportPeriod, Role, TaskPriority, TaskStatus
from ..core.exceptions import NotFoundError
from .model import AttendanceReportRow, TaskReportRow
from .performance import (
    UNASSIGNED_DEPARTMENT,
    Bucket,
    averages,
    comparison_averages,
    department_performance,
    is_overdue,
    make_buckets,
    percentage,
    score_all,
    score_employee,
    split_by_bucket,
)
from .repository import ReportRepository

# how many rows of each kind feed the activity feed
_RECENT_ATTENDANCE = 5
_RECENT_TASKS = 5
_RECENT_EMPLOYEES = 3

_STATUS_KEYS = {
    AttendanceStatus.PRESENT: "present",
    AttendanceStatus.ABSENT: "absent",
    AttendanceStatus.LATE: "late",
    AttendanceStatus.EARLY_LEAVE: "earlyLeave",
}


def _status_bucket(**extra) -> dict:
    return {**extra, "total": 0, "present": 0, "absent": 0, "late": 0, "earlyLeave": 0}


def _count_status(bucket: dict, status: AttendanceStatus) -> None:
    bucket["total"] += 1
    key = _STATUS_KEYS.get(status)
    if key:
        bucket[key] += 1


def trend_key(created_at: datetime, period: ReportPeriod) -> str:
    """week -> day, month -> week start (Monday), year -> month."""
    if period == ReportPeriod.YEAR:
        return created_at.strftime("%Y-%m")
    if period == ReportPeriod.MONTH:
        return week_start(created_at.date()).isoformat()
    return created_at.date().isoformat()


def average_completion_days(rows: Iterable[TaskReportRow]) -> float:
    """Mean of updated_at - created_at over completed tasks, in days (1 decimal).

    updated_at stands in for the completion time since status changes are not
    timestamped separately.
    """

    spans = [
        (r.updated_at - r.created_at).total_seconds() / 86400
        for r in rows
        if r.status == TaskStatus.COMPLETED and r.updated_at is not None
    ]
    if not spans:
        return 0
    return round(sum(spans) / len(spans), 1)


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def to_dict(self) -> dict:
        return {"startDate": self.start.isoformat(), "endDate": self.end.isoformat()}


class ReportService:
    def __init__(self, reports: ReportRepository, *, cache: Optional[TaggedCache] = None):
        self._reports = reports
        self._cache = cache

    def _cached(self, key: str, factory, *, ttl: int, tags: List[CacheTag]):
        if self._cache is None:
            return factory()
        return self._cache.get_or_set(key, factory, ttl=ttl, tags=tags)

    # ----- attendance -----

    def build_attendance_report(
        self,
        *,
        start: date,
        end: date,
        department: Optional[str] = None,
    ) -> dict:
        rows = self._reports.get_attendance_rows(start_date=start, end_date=end, department=department)
        report = summarize_attendance(rows)
        report["dateRange"] = {"startDate": start.isoformat(), "endDate": end.isoformat()}
        report["departments"] = self._reports.department_names()
        return report

    def attendance_export_rows(self, *, start: date, end: date, department: Optional[str] = None) -> List[dict]:
        rows = self._reports.get_attendance_rows(start_date=start, end_date=end, department=department)
        return [
            {
                "date": r.work_date.isoformat(),
                "employee_id": r.employee_code or "",
                "name": r.name,
                "email": r.email,
                "department": r.department or "",
                "check_in": r.check_in.strftime("%H:%M") if r.check_in else "",
                "check_out": r.check_out.strftime("%H:%M") if r.check_out else "",
                "total_hours": r.total_hours if r.total_hours is not None else "",
                "status": r.status.value,
                "notes": r.notes or "",
            }
            for r in rows
        ]

    # ----- tasks -----

    def build_task_report(self, *, period: ReportPeriod, start: datetime, end: datetime) -> dict:
        rows = self._reports.get_task_rows(start=start, end=end)
        report = summarize_tasks(rows, period)
        report["period"] = period.value
        report["dateRange"] = DateRange(start, end).to_dict()
        return report

    def task_export_rows(self, *, start: datetime, end: datetime) -> List[dict]:
        return [
            {
                "id": r.task_id,
                "title": r.title,
                "status": r.status.value,
                "priority": r.priority.value,
                "assignee": r.assignee_name or "",
                "creator": r.creator_name or "",
                "department": r.department or "",
                "due_date": r.due_date.date().isoformat() if r.due_date else "",
                "created_at": r.created_at.isoformat(timespec="seconds"),
            }
            for r in self._reports.get_task_rows(start=start, end=end)
        ]

    def employee_export_rows(self, *, include_inactive: bool = False) -> List[dict]:
        return [
            {
                "employee_id": r.employee_code,
                "name": r.name,
                "email": r.email,
                "role": r.role,
                "position": r.position,
                "department": r.department or "",
                "manager": r.manager or "",
                "status": r.status,
                "hire_date": r.hire_date.isoformat(),
                "salary": r.salary if r.salary is not None else "",
                "active": "yes" if r.is_active else "no",
            }
            for r in self._reports.get_employee_rows(include_inactive=include_inactive)
        ]

    # ----- headline stats -----

    def period_stats(self, *, period: ReportPeriod, today: date) -> dict:
        def load() -> dict:
            start, end = period_range(period, today=today)
            attendance = self._reports.get_attendance_rows(start_date=start.date(), end_date=end.date())
            tasks = self._reports.get_task_rows(start=start, end=end)
            with_hours = [r.total_hours for r in attendance if r.total_hours is not None]
            completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
            return {
                "attendanceRate": percentage(sum(1 for r in attendance if r.check_in is not None), len(attendance)),
                "averageHours": round(sum(with_hours) / len(with_hours), 1) if with_hours else 0,
                "taskCompletionRate": percentage(completed, len(tasks)),
                "activeEmployees": sum(
                    1
                    for r in attendance
                    if r.work_date == today and r.check_in is not None and r.check_out is None
                ),
                "period": period.value,
            }

        key = f"reports:stats:{period.value}:{today.isoformat()}"
        return self._cached(key, load, ttl=CACHE_TTL_MEDIUM, tags=[CacheTag.REPORTS])

    def dashboard_stats(self, user: SessionUser, *, today: date) -> dict:
        """Role-scoped counters; an EMPLOYEE sees their own tasks and attendance rate."""

        scoped_user = user.user_id if user.role == Role.EMPLOYEE else None

        def load() -> dict:
            today_rows = self._reports.get_attendance_rows(start_date=today, end_date=today)
            month_rows = self._reports.get_attendance_rows(
                start_date=today.replace(day=1), end_date=today, user_id=scoped_user
            )
            counts = self._reports.task_status_counts(assignee_id=scoped_user)
            return {
                "totalEmployees": self._reports.count_active_employees(),
                "presentToday": sum(1 for r in today_rows if r.check_in is not None),
                "pendingTasks": counts.get(TaskStatus.PENDING.value, 0),
                "completedTasks": counts.get(TaskStatus.COMPLETED.value, 0),
                "attendanceRate": percentage(sum(1 for r in month_rows if r.check_in is not None), len(month_rows)),
            }

        key = f"dashboard:stats:{scoped_user or 'all'}:{today.isoformat()}"
        return self._cached(
            key,
            load,
            ttl=CACHE_TTL_SHORT,
            tags=[CacheTag.DASHBOARD, CacheTag.ATTENDANCE, CacheTag.TASKS],
        )

    def recent_activities(self, *, now: datetime, limit: int = RECENT_ACTIVITY_LIMIT) -> List[dict]:
        """Latest check-ins/outs, task progress and new hires, newest first."""

        events: List[tuple] = []

        def add(at: datetime, event_id: str, kind: str, message: str, status: str = "completed") -> None:
            events.append((at, event_id, kind, message, status))

        for r in self._reports.get_recent_attendance(_RECENT_ATTENDANCE):
            if r.check_in is not None:
                add(r.created_at, f"attendance-{r.attendance_id}", "attendance",
                    f"{r.name} checked in at {r.check_in:%H:%M}")
            if r.check_out is not None:
                add(r.updated_at, f"attendance-out-{r.attendance_id}", "attendance",
                    f"{r.name} checked out at {r.check_out:%H:%M}")
        for t in self._reports.get_recent_task_rows(_RECENT_TASKS):
            who = t.assignee_name or t.creator_name
            if t.status == TaskStatus.COMPLETED:
                add(t.updated_at, f"task-completed-{t.task_id}", "task", f'Task "{t.title}" completed by {who}')
            elif t.status == TaskStatus.IN_PROGRESS:
                add(t.updated_at, f"task-progress-{t.task_id}", "task", f'Task "{t.title}" started by {who}',
                    "in_progress")
        for e in self._reports.get_recent_employees(_RECENT_EMPLOYEES):
            add(e.created_at, f"employee-{e.employee_pk}", "employee", f"New employee {e.name} added to the system")

        events.sort(key=lambda ev: ev[0], reverse=True)
        return [
            {
                "id": event_id,
                "type": kind,
                "message": message,
                "time": time_ago(at, now),
                "timestamp": at.isoformat(),
                "status": status,
            }
            for at, event_id, kind, message, status in events[:limit]
        ]

    # ----- performance -----

    def _performance_inputs(self, start: datetime, end: datetime, *, department: Optional[str] = None):
        """Active employees plus their attendance and assigned tasks in [start, end]."""

        employees = self._reports.get_performance_employees(department=department)
        user_ids = {e.user_id for e in employees}
        attendance = [
            r
            for r in self._reports.get_attendance_rows(start_date=start.date(), end_date=end.date())
            if r.user_id in user_ids
        ]
        tasks = [t for t in self._reports.get_task_rows(start=start, end=end) if t.assignee_id in user_ids]
        return employees, attendance, tasks

    def performance_overview(self, *, period: ReportPeriod, start: datetime, end: datetime, now: datetime) -> dict:
        def load() -> dict:
            employees, attendance, tasks = self._performance_inputs(start, end)
            scores = score_all(employees, attendance, tasks, days=range_days(start, end), now=now)
            ranked = [{**s.to_dict(), "rank": rank} for rank, s in enumerate(scores, 1)]
            return {
                "period": period.value,
                "dateRange": DateRange(start, end).to_dict(),
                "summary": {"totalEmployees": len(employees), **averages(scores)},
                "employeePerformance": ranked,
                "departmentPerformance": department_performance(scores),
                "topPerformers": [
                    {
                        "employeeId": r["employeeId"],
                        "name": r["name"],
                        "productivityScore": r["productivityScore"],
                        "rank": r["rank"],
                    }
                    for r in ranked[:TOP_PERFORMERS_LIMIT]
                ],
            }

        key = f"reports:performance:{period.value}:{start.isoformat()}:{end.isoformat()}"
        return self._cached(key, load, ttl=CACHE_TTL_LONG, tags=[CacheTag.REPORTS])

    def employee_performance(
        self,
        employee_code: str,
        *,
        period: ReportPeriod,
        granularity: Granularity,
        start: datetime,
        end: datetime,
        now: datetime,
    ) -> dict:
        """One employee's scores, rank, department/company comparison and trend lines."""

        employees, attendance, tasks = self._performance_inputs(start, end)
        target = next((e for e in employees if e.employee_code == employee_code), None)
        if target is None:
            raise NotFoundError("Employee not found")

        scores = score_all(employees, attendance, tasks, days=range_days(start, end), now=now)
        rank, mine = next((i, s) for i, s in enumerate(scores, 1) if s.employee.user_id == target.user_id)
        peers = [s for s in scores if s.department == mine.department]

        own_attendance = [r for r in attendance if r.user_id == target.user_id]
        own_tasks = [t for t in tasks if t.assignee_id == target.user_id]
        buckets = make_buckets(start.date(), end.date(), granularity)
        points = [
            score_employee(target, att, assigned, days=bucket.days, now=now)
            for bucket, att, assigned in zip(
                buckets,
                split_by_bucket(own_attendance, buckets, lambda r: r.work_date),
                split_by_bucket(own_tasks, buckets, lambda t: t.created_at.date()),
            )
        ]

        details = mine.to_dict()
        return {
            "employee": {k: details[k] for k in ("employeeId", "name", "email", "department", "position")},
            "performance": {
                "productivityScore": mine.productivity_score,
                "efficiencyRate": mine.efficiency_rate,
                "attendanceRate": mine.attendance_rate,
                "taskCompletionRate": mine.task_completion_rate,
                "attendanceCorrelation": 0,
                "rank": rank,
                "rankInDepartment": peers.index(mine) + 1,
                "totalHours": details["totalHours"],
                "avgHoursPerDay": mine.avg_hours_per_day,
                "tasksCompleted": mine.tasks_completed,
                "tasksAssigned": mine.tasks_assigned,
                "tasksOverdue": mine.tasks_overdue,
            },
            "comparison": {
                "departmentAvg": comparison_averages(peers),
                "companyAvg": comparison_averages(scores),
            },
            "trends": {
                "labels": [b.label for b in buckets],
                "productivityTrend": [p.productivity_score for p in points],
                "attendanceTrend": [p.attendance_rate for p in points],
                "taskCompletionTrend": [p.task_completion_rate for p in points],
            },
            "period": period.value,
            "dateRange": DateRange(start, end).to_dict(),
        }

    def performance_trends(
        self,
        *,
        period: ReportPeriod,
        granularity: Granularity,
        start: datetime,
        end: datetime,
        now: datetime,
        department: Optional[str] = None,
    ) -> dict:
        def load() -> dict:
            employees, attendance, tasks = self._performance_inputs(start, end, department=department)
            buckets = make_buckets(start.date(), end.date(), granularity)
            trends = []
            for bucket, att, assigned in zip(
                buckets,
                split_by_bucket(attendance, buckets, lambda r: r.work_date),
                split_by_bucket(tasks, buckets, lambda t: t.created_at.date()),
            ):
                scores = score_all(employees, att, assigned, days=bucket.days, now=now)
                top = scores[0] if scores else None
                trends.append(
                    {
                        "date": bucket.label,
                        **averages(scores),
                        "totalEmployees": len(employees),
                        "topPerformer": (
                            {
                                "employeeId": top.employee.employee_code,
                                "name": top.employee.name,
                                "productivityScore": top.productivity_score,
                            }
                            if top is not None
                            else None
                        ),
                    }
                )
            return {
                "period": period.value,
                "granularity": granularity.value,
                "department": department,
                "dateRange": DateRange(start, end).to_dict(),
                "trends": trends,
            }

        key = (
            f"reports:performance-trends:{granularity.value}:{department or 'all'}:"
            f"{start.isoformat()}:{end.isoformat()}"
        )
        return self._cached(key, load, ttl=CACHE_TTL_LONG, tags=[CacheTag.REPORTS])

    # ----- task analytics -----

    def task_metrics(self, *, period: ReportPeriod, start: datetime, end: datetime, now: datetime) -> dict:
        rows = self._reports.get_task_rows(start=start, end=end)
        return {
            "period": period.value,
            "dateRange": DateRange(start, end).to_dict(),
            "metrics": summarize_task_metrics(rows, days=range_days(start, end), now=now),
        }

    def task_trends(
        self,
        *,
        period: ReportPeriod,
        granularity: Granularity,
        start: datetime,
        end: datetime,
    ) -> dict:
        rows = self._reports.get_task_rows(start=start, end=end)
        buckets = make_buckets(start.date(), end.date(), granularity)
        return {
            "period": period.value,
            "granularity": granularity.value,
            "dateRange": DateRange(start, end).to_dict(),
            **summarize_task_trends(rows, buckets, start=start, end=end),
        }


def range_days(start: datetime, end: datetime) -> int:
    """Calendar days covered by [start, end], both ends inclusive."""
    return (end.date() - start.date()).days + 1


def _count_priorities(rows: Iterable[TaskReportRow]) -> Dict[str, int]:
    counts = {p.value: 0 for p in TaskPriority}
    for r in rows:
        counts[r.priority.value] += 1
    return counts


def summarize_task_metrics(rows: Sequence[TaskReportRow], *, days: int, now: datetime) -> dict:
    completed = [r for r in rows if r.status == TaskStatus.COMPLETED]
    overdue = [r for r in rows if is_overdue(r, now)]
    backlog = [r for r in rows if r.status in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)]
    assignees = {r.assignee_id for r in rows if r.assignee_id is not None}
    hours = [(r.updated_at - r.created_at).total_seconds() / 3600 for r in completed]

    return {
        "avgCompletionTime": average_completion_days(rows),
        "avgCompletionTimeHours": round(sum(hours) / len(hours), 1) if hours else 0,
        "overdueTasks": len(overdue),
        "overduePercentage": percentage(len(overdue), len(rows)),
        "overdueByPriority": _count_priorities(overdue),
        "velocity": round(len(completed) / days, 1) if days > 0 else 0,
        "backlogSize": len(backlog),
        "backlogByPriority": _count_priorities(backlog),
        "avgTasksPerAssignee": round(len(rows) / len(assignees), 1) if assignees else 0,
        "totalTasks": len(rows),
        "completedTasks": len(completed),
    }


def summarize_task_trends(
    rows: Sequence[TaskReportRow],
    buckets: Sequence[Bucket],
    *,
    start: datetime,
    end: datetime,
) -> dict:
    """Creation, completion, priority and department counts per bucket.

    Completions land in the bucket of their last update and only count when
    that update falls inside [start, end].
    """

    created_slots = split_by_bucket(rows, buckets, lambda r: r.created_at.date())
    done = [r for r in rows if r.status == TaskStatus.COMPLETED and start <= r.updated_at <= end]
    completed_slots = split_by_bucket(done, buckets, lambda r: r.updated_at.date())

    creation, priority = [], []
    departments: Dict[str, List[int]] = {}
    for i, (bucket, created, completed) in enumerate(zip(buckets, created_slots, completed_slots)):
        statuses = Counter(r.status for r in created)
        stamp = {"period": bucket.label, "date": bucket.start.isoformat()}
        creation.append(
            {
                **stamp,
                "created": len(created),
                "completed": len(completed),
                "inProgress": statuses[TaskStatus.IN_PROGRESS],
                "pending": statuses[TaskStatus.PENDING],
                "cancelled": statuses[TaskStatus.CANCELLED],
            }
        )
        priority.append({**stamp, **_count_priorities(created)})
        for r in created:
            departments.setdefault(r.department or UNASSIGNED_DEPARTMENT, [0] * len(buckets))[i] += 1

    return {
        "creationTrends": creation,
        "priorityTrends": priority,
        "departmentTrends": [
            {
                "department": name,
                "trends": [
                    {"period": b.label, "date": b.start.isoformat(), "count": count}
                    for b, count in zip(buckets, counts)
                ],
            }
            for name, counts in departments.items()
        ],
    }


def summarize_attendance(rows: Sequence[AttendanceReportRow]) -> dict:
    total = len(rows)
    summary = _status_bucket()
    departments: Dict[str, dict] = {}
    daily: Dict[str, dict] = {}
    per_employee: Dict[int, dict] = {}

    for r in rows:
        _count_status(summary, r.status)

        dept = r.department or "Unknown"
        _count_status(departments.setdefault(dept, _status_bucket(department=dept)), r.status)

        day = r.work_date.isoformat()
        _count_status(daily.setdefault(day, _status_bucket(date=day)), r.status)

        emp = per_employee.get(r.user_id)
        if emp is None:
            emp = {
                "user": {"id": r.user_id, "name": r.name, "email": r.email},
                "employee": (
                    {"employeeId": r.employee_code, "position": r.position, "department": r.department}
                    if r.employee_code
                    else None
                ),
                "totalDays": 0,
                "presentDays": 0,
                "absentDays": 0,
                "lateDays": 0,
                "earlyLeaveDays": 0,
                "totalHours": 0.0,
            }
            per_employee[r.user_id] = emp
        emp["totalDays"] += 1
        emp["totalHours"] += r.total_hours or 0
        key = _STATUS_KEYS.get(r.status)
        if key:
            emp[f"{key}Days"] += 1

    for emp in per_employee.values():
        days = emp["totalDays"]
        emp["attendancePercentage"] = round(emp["presentDays"] / days * 100, 2) if days else 0
        emp["averageHours"] = round(emp["totalHours"] / days, 2) if days else 0
        emp["totalHours"] = round(emp["totalHours"], 2)

    top = sorted(per_employee.values(), key=lambda e: e["attendancePercentage"], reverse=True)
    total_hours = sum(r.total_hours or 0 for r in rows)

    return {
        "summary": {
            "totalRecords": total,
            "presentCount": summary["present"],
            "absentCount": summary["absent"],
            "lateCount": summary["late"],
            "earlyLeaveCount": summary["earlyLeave"],
            "uniqueEmployees": len(per_employee),
            "averageHours": round(total_hours / total, 2) if total else 0,
            "attendanceRate": percentage(summary["present"], total),
        },
        "departmentStats": departments,
        "dailyTrends": dict(sorted(daily.items())),
        "topPerformers": top[:TOP_PERFORMERS_LIMIT],
    }


def summarize_tasks(rows: Sequence[TaskReportRow], period: ReportPeriod) -> dict:
    status_counts = {s.value: 0 for s in TaskStatus}
    priority_counts = {p.value: 0 for p in TaskPriority}
    trends: Dict[str, dict] = {}
    assignees: Dict[int, dict] = {}
    departments: Dict[str, List[TaskReportRow]] = {}

    for r in rows:
        status_counts[r.status.value] += 1
        priority_counts[r.priority.value] += 1

        bucket = trends.setdefault(
            trend_key(r.created_at, period),
            {"date": trend_key(r.created_at, period), "created": 0, "completed": 0, "inProgress": 0},
        )
        bucket["created"] += 1
        if r.status == TaskStatus.COMPLETED:
            bucket["completed"] += 1
        elif r.status == TaskStatus.IN_PROGRESS:
            bucket["inProgress"] += 1

        if r.assignee_id is not None:
            a = assignees.setdefault(
                r.assignee_id,
                {
                    "assigneeId": r.assignee_id,
                    "assigneeName": r.assignee_name,
                    "assigneeEmail": r.assignee_email,
                    "totalTasks": 0,
                    "completedTasks": 0,
                    "inProgressTasks": 0,
                },
            )
            a["totalTasks"] += 1
            if r.status == TaskStatus.COMPLETED:
                a["completedTasks"] += 1
            elif r.status == TaskStatus.IN_PROGRESS:
                a["inProgressTasks"] += 1

        departments.setdefault(r.department or UNASSIGNED_DEPARTMENT, []).append(r)

    by_assignee = [
        {**a, "completionRate": percentage(a["completedTasks"], a["totalTasks"])} for a in assignees.values()
    ]
    by_assignee.sort(key=lambda a: a["totalTasks"], reverse=True)

    by_department = []
    for name, dept_rows in departments.items():
        completed = sum(1 for r in dept_rows if r.status == TaskStatus.COMPLETED)
        by_department.append(
            {
                "department": name,
                "totalTasks": len(dept_rows),
                "completedTasks": completed,
                "completionRate": percentage(completed, len(dept_rows)),
                "avgCompletionTime": average_completion_days(dept_rows),
            }
        )
    by_department.sort(key=lambda d: d["totalTasks"], reverse=True)

    total = len(rows)
    completed = status_counts[TaskStatus.COMPLETED.value]
    return {
        "summary": {
            "totalTasks": total,
            "completedTasks": completed,
            "inProgressTasks": status_counts[TaskStatus.IN_PROGRESS.value],
            "pendingTasks": status_counts[TaskStatus.PENDING.value],
            "cancelledTasks": status_counts[TaskStatus.CANCELLED.value],
            "completionRate": percentage(completed, total),
            "avgCompletionTime": average_completion_days(rows),
        },
        "trends": [trends[k] for k in sorted(trends)],
        "statusDistribution": status_counts,
        "priorityDistribution": priority_counts,
        "byAssignee": by_assignee,
        "byDepartment": by_department,
    }

