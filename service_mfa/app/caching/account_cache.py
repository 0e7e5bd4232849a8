"""
Bounded, expiring cache of resolved account statuses.
"""

import threading
import time
from typing import Any, Callable, Dict, Optional

from cachetools import TTLCache

from shared.logging import get_logger
from ..models import UserAccount


DEFAULT_MAX_SIZE = 100_000_000
DEFAULT_TTL_SECONDS = 5.0


class AccountStatusCache:
    """Thread-safe ``username -> UserAccount`` store.

    Entries expire ``ttl`` seconds after they were written and the least
    recently used entry is evicted once ``max_size`` is reached. Concurrent
    writers for one username are not coordinated; the last write wins.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE, ttl: float = DEFAULT_TTL_SECONDS,
                 timer: Callable[[], float] = time.monotonic):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.max_size = max_size
        self.ttl = ttl
        self.logger = get_logger("mfa.cache")
        self._cache: TTLCache = TTLCache(maxsize=max_size, ttl=ttl, timer=timer)
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, username: str) -> Optional[UserAccount]:
        with self._lock:
            account = self._cache.get(username)
            if account is None:
                self._misses += 1
            else:
                self._hits += 1
        return account

    def put(self, username: str, account: UserAccount) -> None:
        with self._lock:
            self._cache[username] = account

    def invalidate(self, username: str) -> bool:
        """Drop a cached status; returns whether one was present."""
        with self._lock:
            return self._cache.pop(username, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
        self.logger.info("Account status cache cleared")

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            self._cache.expire()
            return {
                "size": len(self._cache),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl,
                "hits": self._hits,
                "misses": self._misses,
            }
