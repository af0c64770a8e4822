"""Read-through TTL caches for user profiles and transaction listings."""

import asyncio
import logging
import threading
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

MISS = object()


class TTLCache:
    """
    Thread-safe key/value cache with per-entry expiry.

    Expired entries are dropped lazily on read and in bulk by
    ``purge_expired`` (run periodically by the cache sweeper). Every
    invalidation bumps a generation counter; ``get_or_load`` only stores
    a loaded value if no invalidation happened while the loader ran.
    """

    def __init__(self, name: str, default_ttl: float, clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._generation = 0

    def get(self, key: str) -> Any:
        """Return the cached value or ``MISS``."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return MISS
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                self._misses += 1
                return MISS
            self._hits += 1
            return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        expires_at = self._clock() + (self.default_ttl if ttl is None else ttl)
        with self._lock:
            self._entries[key] = (value, expires_at)

    def invalidate(self, key: str) -> bool:
        with self._lock:
            self._generation += 1
            return self._entries.pop(key, None) is not None

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every key starting with ``prefix``; returns the count removed."""
        with self._lock:
            self._generation += 1
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def get_or_load(self, key: str, loader: Callable[[], Any], ttl: Optional[float] = None) -> Any:
        """
        Return the cached value, loading it on a miss.

        The loaded value is stored only if nothing was invalidated while
        the loader ran; otherwise it is returned uncached, since it may
        predate the write behind that invalidation.
        """
        value = self.get(key)
        if value is not MISS:
            return value
        with self._lock:
            generation = self._generation
        value = loader()
        expires_at = self._clock() + (self.default_ttl if ttl is None else ttl)
        with self._lock:
            if self._generation == generation:
                self._entries[key] = (value, expires_at)
            else:
                logger.debug(f"{self.name} cache: not storing {key} loaded across an invalidation")
        return value

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def stats(self) -> dict:
        with self._lock:
            return {
                "name": self.name,
                "keys": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "ttl_seconds": self.default_ttl,
            }


def user_key(user_id: str) -> str:
    return f"user:{user_id}"


def transactions_key(user_id: str, suffix: str) -> str:
    return f"transactions:{user_id}:{suffix}"


class CacheService:
    """The two read-through caches and their per-user invalidation."""

    def __init__(
        self,
        user_ttl: float = 300,
        transaction_ttl: float = 120,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.users = TTLCache("users", user_ttl, clock=clock)
        self.transactions = TTLCache("transactions", transaction_ttl, clock=clock)

    def invalidate_user(self, user_id: str) -> int:
        """
        Drop every cached entry belonging to ``user_id``.

        Covers the profile key and all transaction-list variants (any
        suffix). Returns the number of keys removed.
        """
        removed = 0
        if self.users.invalidate(user_key(user_id)):
            removed += 1
        if self.transactions.invalidate(f"transactions:{user_id}"):
            removed += 1
        removed += self.transactions.invalidate_prefix(f"transactions:{user_id}:")
        logger.debug(f"Invalidated {removed} cache entries for user {user_id}")
        return removed

    def purge_expired(self) -> int:
        return self.users.purge_expired() + self.transactions.purge_expired()

    def clear(self) -> None:
        self.users.clear()
        self.transactions.clear()

    def stats(self) -> dict:
        return {
            "users": self.users.stats(),
            "transactions": self.transactions.stats(),
        }


async def run_cache_sweeper(cache_service: CacheService, interval_seconds: float) -> None:
    """Purge expired entries every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        purged = cache_service.purge_expired()
        if purged:
            logger.debug(f"Cache sweeper purged {purged} expired entries")
