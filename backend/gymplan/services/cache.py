"""
Small TTL cache for read responses.

Owned by whoever creates it (the app keeps one on app.state); the TTL is fixed
at construction. A cached None is a real value: callers tell hits from misses
with ``get(key, MISSING)``.
"""
from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

MISSING = object()


class TTLCache:
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def set(self, key: str, value: Any) -> None:
        now = self._clock()
        self._prune(now)
        self._entries[key] = (now + self.ttl_seconds, value)

    def invalidate(self, key: str | None = None) -> None:
        """Drop one key, or everything when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def contains(self, key: str) -> bool:
        return self.get(key, MISSING) is not MISSING

    def _prune(self, now: float) -> None:
        # Date-suffixed keys are never read again once their day is over
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]
