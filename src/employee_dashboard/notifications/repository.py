from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from ..database.models import Notification
from .model import NotificationDraft


class NotificationRepository(Protocol):
    def create_many(self, drafts: Sequence[NotificationDraft]) -> int:
        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: int, unread_only: bool) -> List[Notification]:
        raise NotImplementedError

    def count_unread(self, user_id: int) -> int:
        raise NotImplementedError

    def mark(self, user_id: int, *, ids: Optional[Sequence[int]], is_read: bool) -> int:
        """Set is_read on the caller's notifications; ids=None means all unread ones."""

        raise NotImplementedError

    def staff_user_ids(self) -> List[int]:
        """Ids of ADMIN and MANAGER users."""

        raise NotImplementedError

    def admin_user_ids(self) -> List[int]:
        raise NotImplementedError
