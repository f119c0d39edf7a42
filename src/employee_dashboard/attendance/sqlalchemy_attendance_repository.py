from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select

from ..api.context import Pagination, SearchParams
from ..api.filters import build_date_range_where, build_text_search_where, combine
from ..core.enums import AttendanceStatus, EmployeeStatus, SortOrder
from ..database.models import Attendance, Department, Employee, User
from ..extensions import db
from .model import AttendanceRecord, EmployeeSnapshot

SEARCH_FIELDS = ("user.name", "user.email")

SORT_COLUMNS = {
    "employee": User.name,
    "date": Attendance.work_date,
    "checkIn": Attendance.check_in,
    "checkOut": Attendance.check_out,
    "totalHours": Attendance.total_hours,
    "status": Attendance.status,
    "department": Department.name,
}


def _to_record(row: Attendance) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=row.id,
        user_id=row.user_id,
        employee_id=row.employee_id,
        work_date=row.work_date,
        check_in=row.check_in,
        check_out=row.check_out,
        status=AttendanceStatus(row.status),
        total_hours=row.total_hours,
        notes=row.notes,
    )


class SQLAlchemyAttendanceRepository:
    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        stmt = select(Attendance).where(Attendance.user_id == user_id, Attendance.work_date == work_date)
        row = db.session.scalars(stmt).first()
        return _to_record(row) if row else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        stmt = (
            select(Attendance)
            .where(Attendance.user_id == user_id)
            .order_by(Attendance.work_date.desc())
            .limit(limit)
        )
        return [_to_record(r) for r in db.session.scalars(stmt)]

    def get_employee_snapshot(self, user_id: int) -> Optional[EmployeeSnapshot]:
        emp = db.session.scalars(select(Employee).where(Employee.user_id == user_id)).first()
        if emp is None:
            return None
        return EmployeeSnapshot(
            employee_id=emp.id,
            user_id=emp.user_id,
            name=emp.user.name,
            is_active=emp.is_active,
            status=EmployeeStatus(emp.status),
            manager_user_id=emp.manager.user_id if emp.manager is not None else None,
        )

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
        row = Attendance(
            user_id=user_id,
            employee_id=employee_id,
            work_date=work_date,
            check_in=check_in,
            status=status.value,
            notes=notes,
        )
        db.session.add(row)
        db.session.flush()
        return row.id

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out: datetime,
        total_hours: float,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> bool:
        row = db.session.get(Attendance, attendance_id)
        if row is None:
            return False
        row.check_out = check_out
        row.total_hours = total_hours
        row.status = status.value
        row.notes = notes
        db.session.flush()
        return True

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
        where = combine(
            build_text_search_where(search.search, SEARCH_FIELDS, Attendance),
            build_date_range_where(start, end, Attendance.work_date),
            Attendance.user_id == user_id if user_id is not None else None,
            Attendance.status == status.value if status else None,
            func.lower(Department.name) == department.lower() if department else None,
        )

        def joined(stmt):
            stmt = stmt.join(User, Attendance.user_id == User.id).outerjoin(
                Employee, Attendance.employee_id == Employee.id
            ).outerjoin(Department, Employee.department_id == Department.id)
            return stmt.where(where) if where is not None else stmt

        column = SORT_COLUMNS.get(search.sort_by or "", Attendance.work_date)
        ordering = column.asc() if search.sort_order == SortOrder.ASC else column.desc()
        stmt = (
            joined(select(Attendance))
            .order_by(ordering, Attendance.check_in.desc(), Attendance.id.desc())
            .offset(pagination.skip)
            .limit(pagination.limit)
        )
        total = int(db.session.scalar(joined(select(func.count(Attendance.id)).select_from(Attendance))) or 0)
        return list(db.session.scalars(stmt)), total

    def department_names(self) -> List[str]:
        stmt = select(Department.name).where(Department.is_active.is_(True)).order_by(Department.name)
        return list(db.session.scalars(stmt))
