from __future__ import annotations

from contextlib import nullcontext
from dataclasses import replace
from datetime import date, datetime, time
from typing import Optional

import pytest
from sqlalchemy.exc import OperationalError

from employee_dashboard.attendance.model import AttendanceRecord, EmployeeSnapshot
from employee_dashboard.attendance.service import AttendanceService
from employee_dashboard.auth.model import SessionUser
from employee_dashboard.cache.tag_cache import CacheTag, TaggedCache
from employee_dashboard.core.enums import AttendanceStatus, EmployeeStatus, Role
from employee_dashboard.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from employee_dashboard.notifications.service import NotificationDispatcher
from employee_dashboard.settings.model import WorkingHours


class InMemoryAttendance:
    def __init__(self, employees: Optional[dict] = None):
        self.employees = employees or {}
        self._by_user_date: dict[tuple[int, date], AttendanceRecord] = {}
        self._id = 0

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self._by_user_date.get((user_id, work_date))

    def get_recent_for_user(self, user_id: int, limit: int):
        items = [r for r in self._by_user_date.values() if r.user_id == user_id]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items[:limit]

    def get_employee_snapshot(self, user_id: int) -> Optional[EmployeeSnapshot]:
        return self.employees.get(user_id)

    def create_checkin(self, *, user_id, employee_id, work_date, check_in, status, notes=None) -> int:
        self._id += 1
        self._by_user_date[(user_id, work_date)] = AttendanceRecord(
            attendance_id=self._id,
            user_id=user_id,
            employee_id=employee_id,
            work_date=work_date,
            check_in=check_in,
            check_out=None,
            status=status,
            notes=notes,
        )
        return self._id

    def update_checkout(self, *, attendance_id, check_out, total_hours, status, notes=None) -> bool:
        for key, rec in self._by_user_date.items():
            if rec.attendance_id == attendance_id:
                self._by_user_date[key] = replace(
                    rec, check_out=check_out, total_hours=total_hours, status=status, notes=notes
                )
                return True
        return False


class InMemoryRecipients:
    def __init__(self, admins=(1,), fail_lookup: bool = False):
        self.admins = list(admins)
        self.fail_lookup = fail_lookup
        self.created = []

    def admin_user_ids(self):
        if self.fail_lookup:
            raise OperationalError("SELECT users", {}, Exception("connection lost"))
        return list(self.admins)

    def create_many(self, drafts):
        self.created.extend(drafts)


USER = SessionUser(user_id=10, email="e@company.com", name="Emp", role=Role.EMPLOYEE)
ADMIN = SessionUser(user_id=1, email="a@company.com", name="Admin", role=Role.ADMIN)


def _snapshot(**overrides) -> EmployeeSnapshot:
    values = dict(
        employee_id=100,
        user_id=USER.user_id,
        name="Emp",
        is_active=True,
        status=EmployeeStatus.ACTIVE,
        manager_user_id=2,
    )
    values.update(overrides)
    return EmployeeSnapshot(**values)


def _service(repo: InMemoryAttendance, recipients=None, cache=None) -> AttendanceService:
    recipients = recipients or InMemoryRecipients()
    return AttendanceService(
        repo,
        NotificationDispatcher(recipients, cache=cache, transaction_factory=nullcontext),
        working_hours=lambda: WorkingHours(start=time(8, 0), end=time(17, 0), late_grace_minutes=2),
        cache=cache,
        transaction_factory=nullcontext,
    )


def test_checkin_on_time_then_checkout_rounds_hours():
    repo = InMemoryAttendance({USER.user_id: _snapshot()})
    svc = _service(repo)

    rec = svc.check_in(USER, now=datetime(2025, 1, 2, 8, 1, 0))
    assert rec["status"] == AttendanceStatus.PRESENT.value

    out = svc.check_out(USER, now=datetime(2025, 1, 2, 17, 20, 0))
    assert out["totalHours"] == 9.3
    assert out["status"] == AttendanceStatus.PRESENT.value


def test_late_checkin_notifies_employee_admins_and_manager():
    recipients = InMemoryRecipients(admins=(1,))
    repo = InMemoryAttendance({USER.user_id: _snapshot()})
    svc = _service(repo, recipients)

    rec = svc.check_in(USER, now=datetime(2025, 1, 2, 9, 0, 0))

    assert rec["status"] == AttendanceStatus.LATE.value
    assert rec["notes"] == "Late by 60 minutes"
    assert sorted(d.user_id for d in recipients.created) == [1, 2, 10]


def test_second_checkin_rejected():
    repo = InMemoryAttendance({USER.user_id: _snapshot()})
    svc = _service(repo)
    svc.check_in(USER, now=datetime(2025, 1, 2, 8, 0, 0))

    with pytest.raises(ValidationError) as exc:
        svc.check_in(USER, now=datetime(2025, 1, 2, 8, 30, 0))
    assert exc.value.code == "ALREADY_CHECKED_IN"


def test_checkout_without_checkin_and_twice():
    repo = InMemoryAttendance({USER.user_id: _snapshot()})
    svc = _service(repo)

    with pytest.raises(ValidationError) as exc:
        svc.check_out(USER, now=datetime(2025, 1, 2, 17, 0, 0))
    assert exc.value.code == "NO_CHECK_IN_RECORD"

    svc.check_in(USER, now=datetime(2025, 1, 2, 8, 0, 0))
    svc.check_out(USER, now=datetime(2025, 1, 2, 17, 0, 0))
    with pytest.raises(ValidationError) as exc:
        svc.check_out(USER, now=datetime(2025, 1, 2, 17, 5, 0))
    assert exc.value.code == "ALREADY_CHECKED_OUT"


def test_early_checkout_marks_early_leave():
    repo = InMemoryAttendance({USER.user_id: _snapshot()})
    svc = _service(repo)
    svc.check_in(USER, now=datetime(2025, 1, 2, 8, 0, 0))

    out = svc.check_out(USER, now=datetime(2025, 1, 2, 15, 0, 0))

    assert out["status"] == AttendanceStatus.EARLY_LEAVE.value


def test_inactive_employee_cannot_check_in():
    repo = InMemoryAttendance({USER.user_id: _snapshot(status=EmployeeStatus.ON_LEAVE)})

    with pytest.raises(AuthorizationError) as exc:
        _service(repo).check_in(USER, now=datetime(2025, 1, 2, 8, 0, 0))
    assert exc.value.code == "EMPLOYEE_INACTIVE"


def test_missing_employee_row():
    repo = InMemoryAttendance()
    svc = _service(repo)

    with pytest.raises(NotFoundError):
        svc.check_in(USER, now=datetime(2025, 1, 2, 8, 0, 0))

    # admins without an employee row may still record attendance
    assert svc.check_in(ADMIN, now=datetime(2025, 1, 2, 8, 0, 0))["userId"] == ADMIN.user_id


def test_checkin_invalidates_dashboard_cache():
    cache = TaggedCache()
    cache.set("dashboard:stats:all", {"presentToday": 0}, ttl=60, tags=[CacheTag.DASHBOARD])
    repo = InMemoryAttendance({USER.user_id: _snapshot()})

    _service(repo, cache=cache).check_in(USER, now=datetime(2025, 1, 2, 8, 0, 0))

    assert cache.get("dashboard:stats:all") is None


def test_checkin_survives_failing_recipient_lookup(caplog):
    recipients = InMemoryRecipients(fail_lookup=True)
    repo = InMemoryAttendance({USER.user_id: _snapshot()})

    rec = _service(repo, recipients).check_in(USER, now=datetime(2025, 1, 2, 9, 0, 0))

    assert rec["status"] == AttendanceStatus.LATE.value
    assert repo.get_for_user_and_date(USER.user_id, date(2025, 1, 2)) is not None
    assert recipients.created == []
    assert "notification delivery failed" in caplog.text
