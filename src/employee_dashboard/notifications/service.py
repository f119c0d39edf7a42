from __future__ import annotations

from typing import Callable, ContextManager, Optional, Sequence

from ..cache.tag_cache import CacheTag, TaggedCache
from ..common.logger import get_logger, log_error
from ..database.session import transaction
from .model import Audience, NotificationOutbox, expand
from .repository import NotificationRepository

logger = get_logger(__name__)


class NotificationDispatcher:
    """Delivers an outbox after the primary transaction has committed.

    Delivery runs in its own transaction. Audience lookups happen inside it,
    so any failure is logged and dropped, never raised to the caller.
    """

    def __init__(
        self,
        notifications: NotificationRepository,
        *,
        cache: Optional[TaggedCache] = None,
        transaction_factory: Callable[[], ContextManager] = transaction,
    ):
        self._notifications = notifications
        self._cache = cache
        self._tx = transaction_factory

    def flush(self, outbox: NotificationOutbox) -> int:
        pending = outbox.drain()
        if not pending:
            return 0
        try:
            with self._tx():
                drafts = expand(pending, self._audience_ids)
                if drafts:
                    self._notifications.create_many(drafts)
        except Exception as exc:
            log_error(logger, exc, "notification delivery failed", count=len(pending))
            return 0
        if self._cache is not None:
            self._cache.invalidate(CacheTag.NOTIFICATIONS)
        logger.debug("delivered %d notifications", len(drafts))
        return len(drafts)

    def _audience_ids(self, audience: Audience):
        if audience == Audience.ADMINS:
            return self._notifications.admin_user_ids()
        return self._notifications.staff_user_ids()


class NotificationService:
    """Use case: read and acknowledge the caller's notifications."""

    def __init__(
        self,
        notifications: NotificationRepository,
        *,
        cache: Optional[TaggedCache] = None,
        transaction_factory: Callable[[], ContextManager] = transaction,
    ):
        self._notifications = notifications
        self._cache = cache
        self._tx = transaction_factory

    def list_for_user(self, user_id: int, *, limit: int, unread_only: bool = False) -> dict:
        rows = self._notifications.list_for_user(user_id, limit=limit, unread_only=unread_only)
        return {
            "notifications": [
                {
                    "id": n.id,
                    "title": n.title,
                    "message": n.message,
                    "type": n.type,
                    "isRead": n.is_read,
                    "createdAt": n.created_at.isoformat(),
                }
                for n in rows
            ],
            "unreadCount": self._notifications.count_unread(user_id),
        }

    def mark(self, user_id: int, *, ids: Optional[Sequence[int]], mark_as_read: bool = True) -> int:
        """Without ids, every unread notification of the caller is marked read."""

        with self._tx():
            if ids is None:
                updated = self._notifications.mark(user_id, ids=None, is_read=True)
            else:
                updated = self._notifications.mark(user_id, ids=ids, is_read=mark_as_read)
        if self._cache is not None:
            self._cache.invalidate(CacheTag.NOTIFICATIONS)
        return updated
