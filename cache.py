"""
Read-through cache for catalog and order listings.

Entries expire after their TTL and every write path invalidates the keys it
affects. Checkout never reads from here.
"""
import threading
import time
from typing import Any, Callable, Dict, Tuple

PUBLIC_PRODUCTS = "products:public"
ALL_PRODUCTS = "products:all"
ORDERS_PREFIX = "orders:"


def orders_key(start_date=None, end_date=None) -> str:
    return f"{ORDERS_PREFIX}{start_date or ''}..{end_date or ''}"


class ReadCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get_or_fetch(self, key: str, ttl: float, fetch: Callable[[], Any]) -> Any:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now - entry[0] < ttl:
                return entry[1]

        # fetch outside the lock; a concurrent miss may fetch twice
        value = fetch()
        with self._lock:
            self._entries[key] = (self._clock(), value)
        return value

    def invalidate(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> None:
        with self._lock:
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
