# helperbars/core/cache.py
"""
In-process key/value cache with per-entry expiry.

Two instances live on every RenderEnvironment: one behind the cacheSet/cacheGet
helpers and one holding bearer tokens. Entries past their expiry are never
returned; they are dropped on access and by a lazy sweep that runs at most
once per ``sweep_interval``.
"""
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Tuple, Union

import structlog

log = structlog.get_logger(__name__)

TTL = Union[int, float, timedelta]


@dataclass
class CacheEntry:
    """A cached value and the clock reading after which it is gone."""
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


def _ttl_seconds(ttl: TTL) -> float:
    if isinstance(ttl, timedelta):
        return ttl.total_seconds()
    return float(ttl)


class TTLCache:
    """
    Thread-safe cache where every entry carries its own time to live.

    Args:
        sweep_interval: Minimum time between purges of expired entries.
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(self, sweep_interval: TTL = 60, clock: Callable[[], float] = time.monotonic):
        self.sweep_interval = _ttl_seconds(sweep_interval)
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._last_sweep = clock()

    def get(self, key: str) -> Tuple[Optional[Any], bool]:
        """Return ``(value, True)`` for a live entry, ``(None, False)`` otherwise."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None, False
            return entry.value, True

    def set_ex(self, key: str, value: Any, ttl: TTL) -> None:
        """Store ``value`` under ``key``, replacing any entry, visible for ``ttl``."""
        seconds = _ttl_seconds(ttl)
        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)
            self._entries[key] = CacheEntry(value=value, expires_at=now + seconds)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def cleanup_expired(self) -> int:
        """Remove expired entries now; returns how many were dropped."""
        with self._lock:
            now = self._clock()
            expired_keys = [k for k, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired_keys:
                del self._entries[key]
            self._last_sweep = now
        if expired_keys:
            log.debug("ttl_cache_swept", removed=len(expired_keys))
        return len(expired_keys)

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep >= self.sweep_interval:
            self.cleanup_expired()
