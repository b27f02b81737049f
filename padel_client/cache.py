"""In-memory response cache with per-entry expiry.

Entries live for the lifetime of the process. There is no size bound:
keys come from a small set of endpoints and query parameters. Expired
entries are dropped lazily on lookup or all at once via ``clear()``.

Usage::

    cache = ResponseCache(ResponseCacheConfig(default_ttl=300.0))
    key = cache_key("/analysis/top-rackets", {"attribute": "Power", "limit": 3})
    cache.set(key, body)
    body = cache.get(key)
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping

LOGGER = logging.getLogger(__name__)


def cache_key(endpoint: str, params: Mapping[str, Any] | None = None) -> str:
    """``endpoint:`` followed by the compact JSON of the cleaned params."""
    encoded = json.dumps(dict(params or {}), separators=(",", ":"), ensure_ascii=False, default=str)
    return f"{endpoint}:{encoded}"


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResponseCacheConfig:
    """Configuration for the response cache.

    Parameters
    ----------
    default_ttl:
        Time-to-live applied when ``set`` gets no ttl (seconds).
        Default 300.
    """

    default_ttl: float = 300.0


# ---------------------------------------------------------------------------
# Entry / stats
# ---------------------------------------------------------------------------


@dataclass
class CacheEntry:
    key: str
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class CacheStats:
    entries: int
    hits: int
    misses: int
    expirations: int


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class ResponseCache:
    """Keyed TTL store for decoded response bodies.

    The expiry check and delete in ``get`` run under one lock, so the cache
    can be shared with worker threads as well as event-loop tasks.
    """

    def __init__(
        self,
        config: ResponseCacheConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or ResponseCacheConfig()
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._expirations = 0

    @property
    def config(self) -> ResponseCacheConfig:
        return self._config

    def get(self, key: str, now: float | None = None) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        if now is None:
            now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(now):
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def set(
        self,
        key: str,
        value: Any,
        ttl: float | None = None,
        now: float | None = None,
    ) -> None:
        """Store ``value`` under ``key``, replacing any previous entry.

        Parameters
        ----------
        ttl:
            Time-to-live in seconds. If None, uses default_ttl.
        """
        if now is None:
            now = self._clock()
        if ttl is None:
            ttl = self._config.default_ttl
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=now + ttl)

    def has(self, key: str, now: float | None = None) -> bool:
        if now is None:
            now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(now)

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        LOGGER.debug("response cache cleared entries=%d", count)

    def entry_count(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries.keys())

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                entries=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                expirations=self._expirations,
            )
