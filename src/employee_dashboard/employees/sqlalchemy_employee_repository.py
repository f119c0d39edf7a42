from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import func, select

from ..api.context import Pagination, SearchParams
from ..api.filters import build_text_search_where, combine
from ..core.enums import SortOrder
from ..database.models import Department, Employee, User
from ..extensions import db

SEARCH_FIELDS = ("user.name", "user.email", "employee_id")

SORT_COLUMNS = {
    "name": User.name,
    "email": User.email,
    "employeeId": Employee.employee_id,
    "position": Employee.position,
    "hireDate": Employee.hire_date,
    "status": Employee.status,
    "department": Department.name,
    "createdAt": Employee.created_at,
}


class SQLAlchemyEmployeeRepository:
    def get(self, employee_pk: int) -> Optional[Employee]:
        return db.session.get(Employee, employee_pk)

    def get_by_user_id(self, user_id: int) -> Optional[Employee]:
        return db.session.scalars(select(Employee).where(Employee.user_id == user_id)).first()

    def find_by_code(self, employee_id: str) -> Optional[Employee]:
        return db.session.scalars(select(Employee).where(Employee.employee_id == employee_id)).first()

    def get_user(self, user_id: int) -> Optional[User]:
        return db.session.get(User, user_id)

    def find_user_by_email(self, email: str, *, exclude_user_id: Optional[int] = None) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        if exclude_user_id is not None:
            stmt = stmt.where(User.id != exclude_user_id)
        return db.session.scalars(stmt).first()

    def get_department(self, department_id: int) -> Optional[Department]:
        dept = db.session.get(Department, department_id)
        return dept if dept is not None and dept.is_active else None

    def find_department_by_name(self, name: str) -> Optional[Department]:
        stmt = select(Department).where(
            func.lower(Department.name) == name.strip().lower(), Department.is_active.is_(True)
        )
        return db.session.scalars(stmt).first()

    def search(
        self,
        *,
        search: SearchParams,
        pagination: Pagination,
        department: Optional[str] = None,
        status: Optional[str] = None,
        include_inactive: bool = False,
        only_user_id: Optional[int] = None,
    ) -> Tuple[List[Employee], int]:
        where = combine(
            build_text_search_where(search.search, SEARCH_FIELDS, Employee),
            None if include_inactive else Employee.is_active.is_(True),
            Employee.status == status if status else None,
            func.lower(Department.name) == department.lower() if department else None,
            Employee.user_id == only_user_id if only_user_id is not None else None,
        )

        base = select(Employee).join(Employee.user).outerjoin(Employee.department)
        count_stmt = select(func.count(Employee.id)).select_from(Employee).join(Employee.user).outerjoin(
            Employee.department
        )
        if where is not None:
            base = base.where(where)
            count_stmt = count_stmt.where(where)

        column = SORT_COLUMNS.get(search.sort_by or "", Employee.created_at)
        ordering = column.asc() if search.sort_order == SortOrder.ASC else column.desc()
        stmt = base.order_by(ordering, Employee.id.desc()).offset(pagination.skip).limit(pagination.limit)

        total = int(db.session.scalar(count_stmt) or 0)
        return list(db.session.scalars(stmt)), total

    def list_active(self) -> List[Employee]:
        stmt = (
            select(Employee)
            .outerjoin(Employee.department)
            .where(Employee.is_active.is_(True))
            .order_by(Department.name, Employee.position)
        )
        return list(db.session.scalars(stmt))

    def add_user(self, user: User) -> User:
        db.session.add(user)
        db.session.flush()
        return user

    def add_employee(self, employee: Employee) -> Employee:
        db.session.add(employee)
        db.session.flush()
        return employee

    def count_active(self) -> int:
        return int(db.session.scalar(select(func.count(Employee.id)).where(Employee.is_active.is_(True))) or 0)

    def active_department_names(self) -> List[str]:
        stmt = select(Department.name).where(Department.is_active.is_(True)).order_by(Department.name)
        return list(db.session.scalars(stmt))

    def count_hired_since(self, since) -> int:
        stmt = select(func.count(Employee.id)).where(
            Employee.is_active.is_(True), Employee.created_at >= since
        )
        return int(db.session.scalar(stmt) or 0)
