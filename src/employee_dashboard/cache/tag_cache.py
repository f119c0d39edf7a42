"""In-memory TTL cache with tag-based invalidation.

Aggregate endpoints cache their payloads under one or more tags; mutation
services invalidate by tag so the next read recomputes.
"""
from __future__ import annotations

import threading
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Set

from ..common.logger import get_logger
from ..core.constants import CACHE_TTL_SHORT

logger = get_logger(__name__)


class CacheTag(str, Enum):
    EMPLOYEES = "employees"
    TASKS = "tasks"
    ATTENDANCE = "attendance"
    NOTIFICATIONS = "notifications"
    DASHBOARD = "dashboard"
    REPORTS = "reports"
    SETTINGS = "settings"


class TaggedCache:
    """Thread-safe in-memory cache."""

    def __init__(self, *, clock: Callable[[], datetime] = datetime.now):
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._keys_by_tag: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        """Get cached value if not expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() > entry["expires_at"]:
                self._drop(key)
                return None
            return entry["value"]

    def set(self, key: str, value: Any, *, ttl: int = CACHE_TTL_SHORT, tags: Iterable[CacheTag] = ()) -> None:
        """Store a value; expired entries are swept on every write."""
        with self._lock:
            self._cleanup_expired()
            tag_values = {CacheTag(tag).value for tag in tags}
            self._entries[key] = {
                "value": value,
                "expires_at": self._clock() + timedelta(seconds=ttl),
                "tags": tag_values,
            }
            for tag in tag_values:
                self._keys_by_tag.setdefault(tag, set()).add(key)

    def get_or_set(
        self,
        key: str,
        factory: Callable[[], Any],
        *,
        ttl: int = CACHE_TTL_SHORT,
        tags: Iterable[CacheTag] = (),
    ) -> Any:
        cached = self.get(key)
        if cached is not None:
            logger.debug("cache hit key=%s", key)
            return cached
        value = factory()
        self.set(key, value, ttl=ttl, tags=tags)
        return value

    def invalidate(self, *tags: CacheTag) -> int:
        """Drop every entry carrying any of the given tags. Returns the number dropped."""
        dropped = 0
        with self._lock:
            for tag in tags:
                for key in self._keys_by_tag.pop(CacheTag(tag).value, set()):
                    if key in self._entries:
                        self._drop(key)
                        dropped += 1
        if dropped:
            logger.debug("cache invalidated tags=%s entries=%d", [CacheTag(t).value for t in tags], dropped)
        return dropped

    def delete(self, key: str) -> None:
        with self._lock:
            self._drop(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._keys_by_tag.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _cleanup_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now > entry["expires_at"]]
        for key in expired:
            self._drop(key)
        return len(expired)

    def _drop(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        for tag in entry["tags"]:
            keys = self._keys_by_tag.get(tag)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._keys_by_tag[tag]
