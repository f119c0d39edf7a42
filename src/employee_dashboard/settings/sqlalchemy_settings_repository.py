from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select

from ..core.enums import Role
from ..database.models import CompanySettings, User
from ..extensions import db


class SQLAlchemySettingsRepository:
    def get_active(self) -> Optional[CompanySettings]:
        stmt = select(CompanySettings).where(CompanySettings.is_active.is_(True)).order_by(CompanySettings.id)
        return db.session.scalars(stmt).first()

    def get_or_create_active(self) -> CompanySettings:
        row = self.get_active()
        if row is None:
            row = CompanySettings()
            db.session.add(row)
            db.session.flush()
        return row

    def list_managers(self) -> List[User]:
        stmt = (
            select(User)
            .where(User.role.in_([Role.ADMIN.value, Role.MANAGER.value]))
            .order_by(User.name)
        )
        return list(db.session.scalars(stmt))
