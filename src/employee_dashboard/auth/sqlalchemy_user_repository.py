from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select

from ..core.enums import Role
from ..database.models import Employee, User
from ..extensions import db
from .model import UserAccount


class SQLAlchemyUserRepository:
    def get_by_id(self, user_id: int) -> Optional[UserAccount]:
        return self._map(db.session.get(User, user_id))

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        row = db.session.scalars(select(User).where(func.lower(User.email) == email.strip().lower())).first()
        return self._map(row)

    @staticmethod
    def _map(row: Optional[User]) -> Optional[UserAccount]:
        if row is None:
            return None
        # Users without an employee row (e.g. the bootstrap admin) can always log in
        employee: Optional[Employee] = row.employee
        return UserAccount(
            user_id=row.id,
            email=row.email,
            name=row.name,
            password_hash=row.password_hash,
            role=Role(row.role),
            is_active=employee.is_active if employee is not None else True,
        )
