from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import func, select, update

from ..core.enums import Role
from ..database.models import Notification, User
from ..extensions import db
from .model import NotificationDraft


class SQLAlchemyNotificationRepository:
    def create_many(self, drafts: Sequence[NotificationDraft]) -> int:
        for d in drafts:
            db.session.add(Notification(user_id=d.user_id, title=d.title, message=d.message, type=d.type.value))
        db.session.flush()
        return len(drafts)

    def list_for_user(self, user_id: int, *, limit: int, unread_only: bool) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        return list(db.session.scalars(stmt))

    def count_unread(self, user_id: int) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.is_read.is_(False)
        )
        return int(db.session.scalar(stmt) or 0)

    def mark(self, user_id: int, *, ids: Optional[Sequence[int]], is_read: bool) -> int:
        stmt = update(Notification).where(Notification.user_id == user_id)
        if ids is None:
            stmt = stmt.where(Notification.is_read.is_(False))
        else:
            stmt = stmt.where(Notification.id.in_(list(ids)))
        result = db.session.execute(stmt.values(is_read=is_read).execution_options(synchronize_session=False))
        return int(result.rowcount or 0)

    def staff_user_ids(self) -> List[int]:
        stmt = select(User.id).where(User.role.in_([Role.ADMIN.value, Role.MANAGER.value]))
        return list(db.session.scalars(stmt))

    def admin_user_ids(self) -> List[int]:
        return list(db.session.scalars(select(User.id).where(User.role == Role.ADMIN.value)))
