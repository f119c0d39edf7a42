from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from employee_dashboard.cache.tag_cache import CacheTag, TaggedCache
from employee_dashboard.core.enums import AttendanceStatus, Granularity, ReportPeriod, TaskPriority, TaskStatus
from employee_dashboard.core.exceptions import NotFoundError
from employee_dashboard.reports.model import (
    AttendanceReportRow,
    PerformanceEmployeeRow,
    RecentAttendanceRow,
    RecentEmployeeRow,
    TaskReportRow,
)
from employee_dashboard.reports.performance import make_buckets, productivity_score
from employee_dashboard.reports.service import ReportService

MONDAY = date(2025, 1, 6)
START = datetime(2025, 1, 6)
END = datetime(2025, 1, 10, 23, 59, 59)
NOW = datetime(2025, 1, 10, 12, 0)

EMPLOYEES = [
    PerformanceEmployeeRow(1, "EMP001", "Alice", "alice@company.com", "Engineer", "Engineering"),
    PerformanceEmployeeRow(2, "EMP002", "Bob", "bob@company.com", "Engineer", "Engineering"),
    PerformanceEmployeeRow(3, "EMP003", "Chi", "chi@company.com", None, None),
]


class FakeReportRepo:
    def __init__(self, employees=(), attendance=(), tasks=(), recent_attendance=(), recent_employees=()):
        self._employees = list(employees)
        self._attendance = list(attendance)
        self._tasks = list(tasks)
        self._recent_attendance = list(recent_attendance)
        self._recent_employees = list(recent_employees)
        self.employee_calls = 0
        self.last_args = None

    def get_performance_employees(self, *, department=None):
        self.employee_calls += 1
        self.last_args = {"department": department}
        return [e for e in self._employees if department is None or e.department == department]

    def get_attendance_rows(self, *, start_date, end_date, department=None, user_id=None):
        return [r for r in self._attendance if start_date <= r.work_date <= end_date]

    def get_task_rows(self, *, start, end):
        return [t for t in self._tasks if start <= t.created_at <= end]

    def get_recent_attendance(self, limit):
        return self._recent_attendance[:limit]

    def get_recent_task_rows(self, limit):
        return sorted(self._tasks, key=lambda t: t.updated_at, reverse=True)[:limit]

    def get_recent_employees(self, limit):
        return self._recent_employees[:limit]


def _att(user_id, day, hours):
    check_in = datetime.combine(day, datetime.min.time()).replace(hour=8)
    return AttendanceReportRow(
        user_id=user_id,
        name=f"User {user_id}",
        email=f"u{user_id}@company.com",
        employee_code=f"EMP{user_id:03d}",
        position="Engineer",
        department="Engineering",
        work_date=day,
        check_in=check_in,
        check_out=check_in + timedelta(hours=hours),
        total_hours=hours,
        status=AttendanceStatus.PRESENT,
    )


def _task(task_id, status, created, *, assignee_id=None, updated=None, due=None, priority=TaskPriority.MEDIUM,
          dept=None):
    return TaskReportRow(
        task_id=task_id,
        title=f"Task {task_id}",
        status=status,
        priority=priority,
        created_at=created,
        updated_at=updated or created,
        due_date=due,
        assignee_id=assignee_id,
        assignee_name=f"User {assignee_id}" if assignee_id else None,
        creator_name="Admin Demo",
        department=dept,
    )


def _team_repo() -> FakeReportRepo:
    """Alice: 5/5 days at 8h, 2/2 tasks done. Bob: 4/5 days at 6h, 2/4 done, one overdue. Chi: nothing done."""

    days = [MONDAY + timedelta(days=i) for i in range(5)]
    attendance = [_att(1, d, 8.0) for d in days] + [_att(2, d, 6.0) for d in days[:4]]
    morning = datetime(2025, 1, 6, 9, 0)
    tasks = [
        _task(1, TaskStatus.COMPLETED, morning, assignee_id=1, updated=morning + timedelta(days=1)),
        _task(2, TaskStatus.COMPLETED, morning, assignee_id=1, updated=morning + timedelta(days=1)),
        _task(3, TaskStatus.COMPLETED, morning + timedelta(hours=1), assignee_id=2),
        _task(4, TaskStatus.COMPLETED, morning + timedelta(hours=1), assignee_id=2),
        _task(5, TaskStatus.PENDING, morning + timedelta(hours=1), assignee_id=2, due=datetime(2025, 1, 7)),
        _task(6, TaskStatus.IN_PROGRESS, morning + timedelta(hours=1), assignee_id=2),
        _task(7, TaskStatus.PENDING, morning, assignee_id=3),
        _task(8, TaskStatus.PENDING, morning, assignee_id=99),
    ]
    return FakeReportRepo(employees=EMPLOYEES, attendance=attendance, tasks=tasks)


def test_productivity_weights_attendance_and_tasks():
    assert productivity_score(100, 100) == 100
    assert productivity_score(80, 50) == 62
    assert productivity_score(0, 0) == 0


def test_weekly_buckets_are_clipped_to_the_range():
    buckets = make_buckets(date(2025, 1, 1), date(2025, 1, 31), Granularity.WEEKLY)

    assert [b.label for b in buckets] == ["2024-12-30", "2025-01-06", "2025-01-13", "2025-01-20", "2025-01-27"]
    assert buckets[0].start == date(2025, 1, 1)
    assert [b.days for b in buckets] == [5, 7, 7, 7, 5]


def test_monthly_and_daily_buckets():
    months = make_buckets(date(2025, 1, 1), date(2025, 12, 31), Granularity.MONTHLY)
    days = make_buckets(MONDAY, MONDAY + timedelta(days=6), Granularity.DAILY)

    assert len(months) == 12
    assert months[1].label == "2025-02"
    assert months[1].days == 28
    assert [b.days for b in days] == [1] * 7


def test_performance_overview_ranks_and_averages():
    report = ReportService(_team_repo()).performance_overview(period=ReportPeriod.WEEK, start=START, end=END, now=NOW)

    ranked = report["employeePerformance"]
    assert [(e["employeeId"], e["rank"]) for e in ranked] == [("EMP001", 1), ("EMP002", 2), ("EMP003", 3)]

    bob = ranked[1]
    assert bob["attendanceRate"] == 80
    assert bob["taskCompletionRate"] == 50
    assert bob["productivityScore"] == 62
    assert bob["efficiencyRate"] == 75
    assert bob["totalHours"] == 24.0
    assert bob["avgHoursPerDay"] == 6.0
    assert ranked[2]["department"] == "Unassigned"
    assert ranked[2]["position"] == "N/A"

    assert report["summary"] == {
        "totalEmployees": 3,
        "avgProductivityScore": 54,
        "avgEfficiencyRate": 58,
        "avgAttendanceRate": 60,
        "avgTaskCompletionRate": 50,
    }
    depts = {d["department"]: d for d in report["departmentPerformance"]}
    assert depts["Engineering"]["totalEmployees"] == 2
    assert depts["Engineering"]["avgProductivityScore"] == 81
    assert depts["Engineering"]["totalHours"] == 64.0
    assert report["topPerformers"][0] == {"employeeId": "EMP001", "name": "Alice", "productivityScore": 100, "rank": 1}


def test_performance_overview_is_cached_until_reports_invalidated():
    repo = _team_repo()
    cache = TaggedCache()
    service = ReportService(repo, cache=cache)

    service.performance_overview(period=ReportPeriod.WEEK, start=START, end=END, now=NOW)
    service.performance_overview(period=ReportPeriod.WEEK, start=START, end=END, now=NOW)
    assert repo.employee_calls == 1

    cache.invalidate(CacheTag.REPORTS)
    service.performance_overview(period=ReportPeriod.WEEK, start=START, end=END, now=NOW)
    assert repo.employee_calls == 2


def test_employee_performance_rank_comparison_and_trends():
    data = ReportService(_team_repo()).employee_performance(
        "EMP002", period=ReportPeriod.WEEK, granularity=Granularity.DAILY, start=START, end=END, now=NOW
    )

    perf = data["performance"]
    assert data["employee"]["name"] == "Bob"
    assert perf["rank"] == 2
    assert perf["rankInDepartment"] == 2
    assert perf["tasksAssigned"] == 4
    assert perf["tasksOverdue"] == 1
    assert data["comparison"]["departmentAvg"]["productivityScore"] == 81
    assert data["comparison"]["companyAvg"]["productivityScore"] == 54

    trends = data["trends"]
    assert trends["labels"][0] == "2025-01-06"
    assert trends["attendanceTrend"] == [100, 100, 100, 100, 0]
    assert trends["taskCompletionTrend"] == [50, 0, 0, 0, 0]
    assert trends["productivityTrend"] == [70, 40, 40, 40, 0]


def test_employee_performance_unknown_code():
    with pytest.raises(NotFoundError):
        ReportService(_team_repo()).employee_performance(
            "EMP404", period=ReportPeriod.WEEK, granularity=Granularity.DAILY, start=START, end=END, now=NOW
        )


def test_performance_trends_per_day_with_top_performer():
    repo = _team_repo()
    data = ReportService(repo).performance_trends(
        period=ReportPeriod.WEEK, granularity=Granularity.DAILY, start=START, end=END, now=NOW
    )

    first, last = data["trends"][0], data["trends"][-1]
    assert data["granularity"] == "daily"
    assert len(data["trends"]) == 5
    assert first["avgProductivityScore"] == 57
    assert first["topPerformer"] == {"employeeId": "EMP001", "name": "Alice", "productivityScore": 100}
    assert last["avgProductivityScore"] == 13
    assert last["totalEmployees"] == 3


def test_performance_trends_filters_department():
    repo = _team_repo()
    data = ReportService(repo).performance_trends(
        period=ReportPeriod.WEEK,
        granularity=Granularity.WEEKLY,
        start=START,
        end=END,
        now=NOW,
        department="Engineering",
    )

    assert repo.last_args == {"department": "Engineering"}
    assert data["trends"][0]["totalEmployees"] == 2


def test_task_metrics_overdue_backlog_and_velocity():
    created = datetime(2025, 1, 6, 9, 0)
    tasks = [
        _task(1, TaskStatus.COMPLETED, created, assignee_id=1, updated=created + timedelta(days=2),
              priority=TaskPriority.HIGH),
        _task(2, TaskStatus.COMPLETED, created, assignee_id=1, updated=created + timedelta(days=1),
              priority=TaskPriority.LOW),
        _task(3, TaskStatus.PENDING, created, assignee_id=2, due=datetime(2025, 1, 7), priority=TaskPriority.URGENT),
        _task(4, TaskStatus.IN_PROGRESS, created, assignee_id=2),
        _task(5, TaskStatus.CANCELLED, created, due=datetime(2025, 1, 7), priority=TaskPriority.LOW),
    ]

    data = ReportService(FakeReportRepo(tasks=tasks)).task_metrics(
        period=ReportPeriod.WEEK, start=datetime(2025, 1, 6), end=datetime(2025, 1, 12, 23, 59), now=NOW
    )

    metrics = data["metrics"]
    assert metrics["avgCompletionTime"] == 1.5
    assert metrics["avgCompletionTimeHours"] == 36.0
    assert metrics["overdueTasks"] == 1
    assert metrics["overduePercentage"] == 20
    assert metrics["overdueByPriority"] == {"LOW": 0, "MEDIUM": 0, "HIGH": 0, "URGENT": 1}
    assert metrics["velocity"] == 0.3
    assert metrics["backlogSize"] == 2
    assert metrics["backlogByPriority"] == {"LOW": 0, "MEDIUM": 1, "HIGH": 0, "URGENT": 1}
    assert metrics["avgTasksPerAssignee"] == 2.5
    assert metrics["totalTasks"] == 5


def test_task_trends_bucket_creation_and_completion_separately():
    tasks = [
        _task(1, TaskStatus.COMPLETED, datetime(2025, 1, 6, 9), updated=datetime(2025, 1, 14, 9), dept="Engineering"),
        _task(2, TaskStatus.PENDING, datetime(2025, 1, 2, 9), priority=TaskPriority.HIGH),
        _task(3, TaskStatus.COMPLETED, datetime(2025, 1, 20, 9), updated=datetime(2025, 2, 3, 9)),
    ]

    data = ReportService(FakeReportRepo(tasks=tasks)).task_trends(
        period=ReportPeriod.MONTH,
        granularity=Granularity.WEEKLY,
        start=datetime(2025, 1, 1),
        end=datetime(2025, 1, 31, 23, 59, 59),
    )

    creation = data["creationTrends"]
    assert [c["period"] for c in creation] == ["2024-12-30", "2025-01-06", "2025-01-13", "2025-01-20", "2025-01-27"]
    assert creation[0]["created"] == 1
    assert creation[0]["pending"] == 1
    assert (creation[1]["created"], creation[1]["completed"]) == (1, 0)
    assert (creation[2]["created"], creation[2]["completed"]) == (0, 1)
    assert sum(c["completed"] for c in creation) == 1
    assert data["priorityTrends"][0]["HIGH"] == 1

    depts = {d["department"]: [t["count"] for t in d["trends"]] for d in data["departmentTrends"]}
    assert depts == {"Engineering": [0, 1, 0, 0, 0], "Unassigned": [1, 0, 0, 1, 0]}


def test_recent_activities_newest_first():
    at = datetime(2025, 1, 8, 8, 0)
    repo = FakeReportRepo(
        tasks=[
            _task(1, TaskStatus.COMPLETED, at - timedelta(days=2), assignee_id=3, updated=at - timedelta(hours=1)),
            _task(2, TaskStatus.PENDING, at - timedelta(days=1)),
            _task(3, TaskStatus.IN_PROGRESS, at - timedelta(days=3), updated=at - timedelta(days=2)),
        ],
        recent_attendance=[
            RecentAttendanceRow(7, "Chi", at, at + timedelta(minutes=30), at, at + timedelta(minutes=30)),
        ],
        recent_employees=[RecentEmployeeRow(5, "Dana", at - timedelta(days=5))],
    )

    feed = ReportService(repo).recent_activities(now=datetime(2025, 1, 8, 9, 0))

    assert [a["id"] for a in feed] == [
        "attendance-out-7",
        "attendance-7",
        "task-completed-1",
        "task-progress-3",
        "employee-5",
    ]
    assert feed[0]["message"] == "Chi checked out at 08:30"
    assert feed[0]["time"] == "30 minutes ago"
    assert feed[2]["message"] == 'Task "Task 1" completed by User 3'
    assert feed[3]["message"] == 'Task "Task 3" started by Admin Demo'
    assert feed[3]["status"] == "in_progress"
    assert feed[4]["time"] == "5 days ago"


def test_recent_activities_respects_limit():
    at = datetime(2025, 1, 8, 8, 0)
    repo = FakeReportRepo(recent_employees=[RecentEmployeeRow(i, f"E{i}", at - timedelta(hours=i)) for i in range(3)])

    assert len(ReportService(repo).recent_activities(now=at, limit=2)) == 2
