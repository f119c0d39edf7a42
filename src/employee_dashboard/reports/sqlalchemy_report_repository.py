from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import aliased

from ..core.enums import AttendanceStatus, TaskPriority, TaskStatus
from ..database.models import Attendance, Department, Employee, Task, User
from ..extensions import db
from .model import (
    AttendanceReportRow,
    EmployeeReportRow,
    PerformanceEmployeeRow,
    RecentAttendanceRow,
    RecentEmployeeRow,
    TaskReportRow,
)


class SQLAlchemyReportRepository:
    def get_attendance_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        department: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        stmt = (
            select(Attendance, User, Employee, Department.name)
            .join(User, Attendance.user_id == User.id)
            .outerjoin(Employee, Attendance.employee_id == Employee.id)
            .outerjoin(Department, Employee.department_id == Department.id)
            .where(Attendance.work_date >= start_date, Attendance.work_date <= end_date)
            .order_by(Attendance.work_date.desc(), User.name)
        )
        if department:
            stmt = stmt.where(func.lower(Department.name) == department.lower())
        if user_id is not None:
            stmt = stmt.where(Attendance.user_id == user_id)

        return [
            AttendanceReportRow(
                user_id=user.id,
                name=user.name,
                email=user.email,
                employee_code=emp.employee_id if emp else None,
                position=emp.position if emp else None,
                department=dept_name,
                work_date=att.work_date,
                check_in=att.check_in,
                check_out=att.check_out,
                total_hours=att.total_hours,
                status=AttendanceStatus(att.status),
                notes=att.notes,
            )
            for att, user, emp, dept_name in db.session.execute(stmt).all()
        ]

    def get_task_rows(self, *, start: datetime, end: datetime) -> Sequence[TaskReportRow]:
        assignee = aliased(User)
        creator = aliased(User)
        stmt = (
            select(Task, assignee, creator.name, Department.name)
            .outerjoin(assignee, Task.assignee_id == assignee.id)
            .join(creator, Task.creator_id == creator.id)
            .outerjoin(Employee, Task.employee_id == Employee.id)
            .outerjoin(Department, Employee.department_id == Department.id)
            .where(Task.is_active.is_(True), Task.created_at >= start, Task.created_at <= end)
            .order_by(Task.created_at)
        )
        return [
            TaskReportRow(
                task_id=task.id,
                title=task.title,
                status=TaskStatus(task.status),
                priority=TaskPriority(task.priority),
                created_at=task.created_at,
                updated_at=task.updated_at,
                due_date=task.due_date,
                assignee_id=user.id if user else None,
                assignee_name=user.name if user else None,
                assignee_email=user.email if user else None,
                creator_name=creator_name,
                department=dept_name,
            )
            for task, user, creator_name, dept_name in db.session.execute(stmt).all()
        ]

    def get_employee_rows(self, *, include_inactive: bool = False) -> Sequence[EmployeeReportRow]:
        manager = aliased(Employee)
        manager_user = aliased(User)
        stmt = (
            select(Employee, User, Department.name, manager_user.name)
            .join(User, Employee.user_id == User.id)
            .outerjoin(Department, Employee.department_id == Department.id)
            .outerjoin(manager, Employee.manager_id == manager.id)
            .outerjoin(manager_user, manager.user_id == manager_user.id)
            .order_by(Employee.employee_id)
        )
        if not include_inactive:
            stmt = stmt.where(Employee.is_active.is_(True))
        return [
            EmployeeReportRow(
                employee_code=emp.employee_id,
                name=user.name,
                email=user.email,
                role=user.role,
                position=emp.position,
                department=dept_name,
                manager=manager_name,
                status=emp.status,
                hire_date=emp.hire_date,
                salary=emp.salary,
                is_active=emp.is_active,
            )
            for emp, user, dept_name, manager_name in db.session.execute(stmt).all()
        ]

    def count_active_employees(self) -> int:
        return int(db.session.scalar(select(func.count(Employee.id)).where(Employee.is_active.is_(True))) or 0)

    def task_status_counts(self, *, assignee_id: Optional[int] = None) -> Dict[str, int]:
        stmt = select(Task.status, func.count(Task.id)).where(Task.is_active.is_(True)).group_by(Task.status)
        if assignee_id is not None:
            stmt = stmt.where(Task.assignee_id == assignee_id)
        return {status: int(count) for status, count in db.session.execute(stmt).all()}

    def department_names(self) -> List[str]:
        stmt = select(Department.name).where(Department.is_active.is_(True)).order_by(Department.name)
        return list(db.session.scalars(stmt))

    def get_performance_employees(self, *, department: Optional[str] = None) -> Sequence[PerformanceEmployeeRow]:
        stmt = (
            select(Employee, User, Department.name)
            .join(User, Employee.user_id == User.id)
            .outerjoin(Department, Employee.department_id == Department.id)
            .where(Employee.is_active.is_(True))
            .order_by(Employee.employee_id)
        )
        if department:
            stmt = stmt.where(func.lower(Department.name) == department.lower())
        return [
            PerformanceEmployeeRow(
                user_id=user.id,
                employee_code=emp.employee_id,
                name=user.name,
                email=user.email,
                position=emp.position,
                department=dept_name,
            )
            for emp, user, dept_name in db.session.execute(stmt).all()
        ]

    def get_recent_attendance(self, limit: int) -> Sequence[RecentAttendanceRow]:
        stmt = (
            select(Attendance, User.name)
            .join(User, Attendance.user_id == User.id)
            .order_by(Attendance.created_at.desc(), Attendance.id.desc())
            .limit(limit)
        )
        return [
            RecentAttendanceRow(
                attendance_id=att.id,
                name=name,
                check_in=att.check_in,
                check_out=att.check_out,
                created_at=att.created_at,
                updated_at=att.updated_at,
            )
            for att, name in db.session.execute(stmt).all()
        ]

    def get_recent_task_rows(self, limit: int) -> Sequence[TaskReportRow]:
        assignee = aliased(User)
        creator = aliased(User)
        stmt = (
            select(Task, assignee, creator.name)
            .outerjoin(assignee, Task.assignee_id == assignee.id)
            .join(creator, Task.creator_id == creator.id)
            .where(Task.is_active.is_(True))
            .order_by(Task.updated_at.desc(), Task.id.desc())
            .limit(limit)
        )
        return [
            TaskReportRow(
                task_id=task.id,
                title=task.title,
                status=TaskStatus(task.status),
                priority=TaskPriority(task.priority),
                created_at=task.created_at,
                updated_at=task.updated_at,
                due_date=task.due_date,
                assignee_id=user.id if user else None,
                assignee_name=user.name if user else None,
                assignee_email=user.email if user else None,
                creator_name=creator_name,
            )
            for task, user, creator_name in db.session.execute(stmt).all()
        ]

    def get_recent_employees(self, limit: int) -> Sequence[RecentEmployeeRow]:
        stmt = (
            select(Employee.id, User.name, Employee.created_at)
            .join(User, Employee.user_id == User.id)
            .order_by(Employee.created_at.desc(), Employee.id.desc())
            .limit(limit)
        )
        return [
            RecentEmployeeRow(employee_pk=pk, name=name, created_at=created_at)
            for pk, name, created_at in db.session.execute(stmt).all()
        ]
