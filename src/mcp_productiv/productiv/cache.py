"""In-memory cache with per-entry expiry."""

import copy
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("mcp-productiv.cache")


@dataclass
class CacheEntry:
    """A cached value and the monotonic time at which it stops being valid."""

    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLCache:
    """Key/value store where entries expire after a time-to-live.

    Expiry is checked lazily: an expired entry is dropped the first time
    it is read. There is no size bound or LRU eviction. Values are deep
    copied on the way in and out, so neither the caller that stored a
    value nor one that read it can change what the cache holds.

    Args:
        clock: Source of the current time in seconds, ``time.monotonic``
            by default
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        """Return the value for ``key``, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache miss for key: {key}")
            return None
        if entry.is_expired(self._clock()):
            logger.debug(f"Cache entry expired for key: {key}")
            del self._entries[key]
            return None
        logger.debug(f"Cache hit for key: {key}")
        return copy.deepcopy(entry.value)

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        self._entries[key] = CacheEntry(
            value=copy.deepcopy(value), expires_at=self._clock() + ttl_seconds
        )
        logger.debug(f"Cached key {key} for {ttl_seconds}s")

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry, expired or not."""
        self._entries.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet read."""
        return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and not entry.is_expired(self._clock())
