from __future__ import annotations

from datetime import datetime
from typing import Callable, ContextManager, Mapping, Optional

from ..api.context import ApiContext
from ..auth.model import SessionUser
from ..auth.permissions import has_role
from ..cache.tag_cache import CacheTag, TaggedCache
from ..common.datetime_utils import now_local
from ..common.logger import get_logger
from ..core.constants import DEFAULT_LIMIT
from ..core.enums import AttendanceStatus, EmployeeStatus, NotificationType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..database.models import Attendance
from ..database.session import transaction
from ..notifications.model import Audience, NotificationOutbox
from ..notifications.service import NotificationDispatcher
from ..settings.model import WorkingHours
from .factory import AttendanceStrategyFactory
from .model import EmployeeSnapshot
from .repository import AttendanceRepository

logger = get_logger(__name__)


def attendance_row_dict(row: Attendance) -> dict:
    emp = row.employee
    return {
        "id": row.id,
        "date": row.work_date.isoformat(),
        "checkIn": row.check_in.isoformat() if row.check_in else None,
        "checkOut": row.check_out.isoformat() if row.check_out else None,
        "totalHours": row.total_hours,
        "status": row.status,
        "notes": row.notes,
        "user": {"id": row.user.id, "name": row.user.name, "email": row.user.email, "image": row.user.image},
        "employee": (
            {
                "employeeId": emp.employee_id,
                "position": emp.position,
                "department": emp.department.name if emp.department else None,
            }
            if emp is not None
            else None
        ),
    }


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        dispatcher: NotificationDispatcher,
        *,
        working_hours: Callable[[], WorkingHours] = WorkingHours,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        cache: Optional[TaggedCache] = None,
        transaction_factory: Callable[[], ContextManager] = transaction,
    ):
        self._attendance = attendance
        self._dispatcher = dispatcher
        self._working_hours = working_hours
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._cache = cache
        self._tx = transaction_factory

    def _require_employee(self, actor: SessionUser) -> Optional[EmployeeSnapshot]:
        emp = self._attendance.get_employee_snapshot(actor.user_id)
        if emp is None:
            if has_role(actor.role, Role.ADMIN):
                return None
            raise NotFoundError("Employee record not found")
        if not emp.is_active or emp.status != EmployeeStatus.ACTIVE:
            raise AuthorizationError(
                f"Your account status ({emp.status.value}) does not allow attendance",
                code="EMPLOYEE_INACTIVE",
            )
        return emp

    @staticmethod
    def _notify_watchers(
        outbox: NotificationOutbox,
        actor: SessionUser,
        emp: Optional[EmployeeSnapshot],
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
    ) -> None:
        """Admins plus the employee's manager, never the actor."""
        outbox.add_audience(
            Audience.ADMINS,
            title,
            message,
            type,
            also=[emp.manager_user_id if emp is not None else None],
            exclude=[actor.user_id],
        )

    def check_in(self, actor: SessionUser, *, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        today = now.date()
        emp = self._require_employee(actor)
        hours = self._working_hours()

        outbox = NotificationOutbox()
        with self._tx():
            if self._attendance.get_for_user_and_date(actor.user_id, today):
                raise ValidationError("You have already checked in today", code="ALREADY_CHECKED_IN")

            strategy = self._factory.for_checkin(now=now, today=today, hours=hours)
            decision = strategy.decide_checkin(now=now, today=today, hours=hours)

            self._attendance.create_checkin(
                user_id=actor.user_id,
                employee_id=emp.employee_id if emp else None,
                work_date=today,
                check_in=now,
                status=decision.status,
                notes=decision.note,
            )
            record = self._attendance.get_for_user_and_date(actor.user_id, today)

        late = decision.status == AttendanceStatus.LATE
        self._notify_watchers(
            outbox,
            actor,
            emp,
            "Employee checked in",
            f"{actor.name} checked in at {now:%H:%M}" + (" (late)" if late else ""),
            NotificationType.WARNING if late else NotificationType.INFO,
        )
        if late:
            outbox.add(
                actor.user_id,
                "Late check-in",
                f"You checked in late today at {now:%H:%M}",
                NotificationType.WARNING,
            )
        self._dispatcher.flush(outbox)
        self._invalidate()

        logger.info("check-in user_id=%s status=%s", actor.user_id, decision.status.value)
        return record.to_dict()

    def check_out(self, actor: SessionUser, *, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        today = now.date()
        emp = self._attendance.get_employee_snapshot(actor.user_id)
        hours = self._working_hours()

        outbox = NotificationOutbox()
        with self._tx():
            record = self._attendance.get_for_user_and_date(actor.user_id, today)
            if record is None or record.check_in is None:
                raise ValidationError("You have not checked in today", code="NO_CHECK_IN_RECORD")
            if record.check_out is not None:
                raise ValidationError("You have already checked out today", code="ALREADY_CHECKED_OUT")

            strategy = self._factory.for_checkout(now=now, today=today, hours=hours, current_status=record.status)
            decision = strategy.decide_checkout(now=now, today=today, hours=hours, current=record.status)
            total_hours = round((now - record.check_in).total_seconds() / 3600, 1)

            self._attendance.update_checkout(
                attendance_id=record.attendance_id,
                check_out=now,
                total_hours=total_hours,
                status=decision.status,
                notes=decision.note or record.notes,
            )
            record = self._attendance.get_for_user_and_date(actor.user_id, today)

        self._notify_watchers(
            outbox,
            actor,
            emp,
            "Employee checked out",
            f"{actor.name} checked out at {now:%H:%M} after {total_hours} hours",
        )
        self._dispatcher.flush(outbox)
        self._invalidate()

        logger.info("check-out user_id=%s hours=%s status=%s", actor.user_id, total_hours, decision.status.value)
        return record.to_dict()

    def today(self, actor: SessionUser, *, now: Optional[datetime] = None) -> Optional[dict]:
        now = now or now_local()
        record = self._attendance.get_for_user_and_date(actor.user_id, now.date())
        return record.to_dict() if record else None

    def history(self, actor: SessionUser, *, limit: int = DEFAULT_LIMIT) -> list:
        return [r.to_dict() for r in self._attendance.get_recent_for_user(actor.user_id, limit)]

    def list_attendance(self, ctx: ApiContext, args: Mapping[str, str]) -> tuple:
        status = None
        if args.get("status"):
            try:
                status = AttendanceStatus(args["status"])
            except ValueError:
                raise ValidationError(
                    "Validation failed",
                    details=[{"field": "status", "message": f"Unknown status '{args['status']}'"}],
                ) from None

        user_id = None
        if not has_role(ctx.role, Role.ADMIN):
            user_id = ctx.user_id
        elif args.get("userId"):
            try:
                user_id = int(args["userId"])
            except ValueError:
                raise ValidationError(
                    "Validation failed", details=[{"field": "userId", "message": "Must be an integer"}]
                ) from None

        rows, total = self._attendance.search(
            search=ctx.search,
            pagination=ctx.pagination,
            start=args.get("startDate") or None,
            end=args.get("endDate") or None,
            user_id=user_id,
            status=status,
            department=args.get("department") or None,
        )
        data = {
            "attendance": [attendance_row_dict(r) for r in rows],
            "departments": self._attendance.department_names(),
        }
        return data, total

    def _invalidate(self) -> None:
        if self._cache is not None:
            self._cache.invalidate(CacheTag.ATTENDANCE, CacheTag.DASHBOARD, CacheTag.REPORTS)
