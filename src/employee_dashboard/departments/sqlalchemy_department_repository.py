from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import and_, func, select

from ..database.models import Department, Employee, User
from ..extensions import db


class SQLAlchemyDepartmentRepository:
    def get_by_id(self, department_id: int) -> Optional[Department]:
        return db.session.get(Department, department_id)

    def find_by_name(self, name: str, *, exclude_id: Optional[int] = None) -> Optional[Department]:
        stmt = select(Department).where(func.lower(Department.name) == name.strip().lower())
        if exclude_id is not None:
            stmt = stmt.where(Department.id != exclude_id)
        return db.session.scalars(stmt).first()

    def list_with_counts(self, *, include_inactive: bool = False) -> List[Tuple[Department, int]]:
        stmt = (
            select(Department, func.count(Employee.id))
            .outerjoin(Employee, and_(Employee.department_id == Department.id, Employee.is_active.is_(True)))
            .group_by(Department.id)
            .order_by(Department.name)
        )
        if not include_inactive:
            stmt = stmt.where(Department.is_active.is_(True))
        return [(dept, int(count)) for dept, count in db.session.execute(stmt).all()]

    def count_active_employees(self, department_id: int) -> int:
        stmt = select(func.count(Employee.id)).where(
            Employee.department_id == department_id, Employee.is_active.is_(True)
        )
        return int(db.session.scalar(stmt) or 0)

    def add(self, department: Department) -> Department:
        db.session.add(department)
        db.session.flush()
        return department

    def get_user(self, user_id: int) -> Optional[User]:
        return db.session.get(User, user_id)
