from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..core.enums import NotificationType


class Audience(str, Enum):
    """Recipient groups looked up at delivery time."""

    ADMINS = "admins"
    STAFF = "staff"  # ADMIN + MANAGER


@dataclass(frozen=True)
class Recipients:
    user_ids: Tuple[int, ...] = ()
    audience: Optional[Audience] = None
    exclude: FrozenSet[int] = field(default_factory=frozenset)

    def resolve(self, lookup: Callable[[Audience], Sequence[int]]) -> List[int]:
        ids = list(self.user_ids)
        if self.audience is not None:
            ids.extend(lookup(self.audience))
        return [uid for uid in dict.fromkeys(ids) if uid not in self.exclude]


@dataclass(frozen=True)
class NotificationDraft:
    """A single notification row ready to be stored."""

    user_id: int
    title: str
    message: str
    type: NotificationType = NotificationType.INFO


@dataclass(frozen=True)
class PendingNotification:
    recipients: Recipients
    title: str
    message: str
    type: NotificationType = NotificationType.INFO


class NotificationOutbox:
    """Collects notifications during a use case; the dispatcher delivers them afterwards.

    Group recipients (admins, staff) are only looked up when the dispatcher
    flushes, inside its own guarded transaction.
    """

    def __init__(self) -> None:
        self._pending: List[PendingNotification] = []

    def add(self, user_id: int, title: str, message: str, type: NotificationType = NotificationType.INFO) -> None:
        self._pending.append(PendingNotification(Recipients(user_ids=(user_id,)), title, message, type))

    def add_many(
        self,
        user_ids: Iterable[int],
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
    ) -> None:
        ids = tuple(dict.fromkeys(user_ids))
        if ids:
            self._pending.append(PendingNotification(Recipients(user_ids=ids), title, message, type))

    def add_audience(
        self,
        audience: Audience,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        *,
        also: Iterable[Optional[int]] = (),
        exclude: Iterable[Optional[int]] = (),
    ) -> None:
        recipients = Recipients(
            user_ids=tuple(uid for uid in also if uid is not None),
            audience=audience,
            exclude=frozenset(uid for uid in exclude if uid is not None),
        )
        self._pending.append(PendingNotification(recipients, title, message, type))

    def drain(self) -> List[PendingNotification]:
        pending, self._pending = self._pending, []
        return pending

    def __len__(self) -> int:
        return len(self._pending)


def expand(pending: Iterable[PendingNotification], lookup: Callable[[Audience], Sequence[int]]) -> List[NotificationDraft]:
    return [
        NotificationDraft(user_id=uid, title=p.title, message=p.message, type=p.type)
        for p in pending
        for uid in p.recipients.resolve(lookup)
    ]
