"""In-process TTL cache for analytics results."""

import time
from threading import Lock
from typing import Any, Optional

from greenreceipt.config import config


class AnalyticsCache:
    """
    Thread-safe cache keyed by ``(role, account_id)``.

    Entries expire after ``ttl_seconds``; receipt writes invalidate the
    entries of the customer and merchant they touch.
    """

    def __init__(self, ttl_seconds: Optional[int] = None):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else config.ANALYTICS_CACHE_TTL_SECONDS
        self._entries: dict[tuple[str, str], tuple[float, Any]] = {}
        self._lock = Lock()

    def get(self, role: str, account_id: str) -> Optional[Any]:
        key = (role, str(account_id))
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if time.monotonic() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, role: str, account_id: str, value: Any) -> None:
        with self._lock:
            self._entries[(role, str(account_id))] = (time.monotonic() + self.ttl_seconds, value)

    def invalidate(self, role: str, account_id: Optional[str]) -> None:
        if not account_id:
            return
        with self._lock:
            self._entries.pop((role, str(account_id)), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


analytics_cache = AnalyticsCache()


def get_analytics_cache() -> AnalyticsCache:
    return analytics_cache
