"""
Module: labor_kernel.utils.cache
Responsibility: Injectable read-through cache for reference lookups
    (projects, contractors).

The cache is an interface, not a global: selectors receive a QueryCache and
callers choose TTLCache for long-lived processes or NullCache for tests and
one-shot jobs.
"""

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class QueryCache(ABC):
    """Key/value cache contract used by selectors."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``."""

    @abstractmethod
    def invalidate(self, key: str | None = None) -> None:
        """Drop one key, or everything when ``key`` is None."""


class NullCache(QueryCache):
    """Never stores anything."""

    def get(self, key: str) -> Any | None:
        return None

    def set(self, key: str, value: Any) -> None:
        pass

    def invalidate(self, key: str | None = None) -> None:
        pass


class TTLCache(QueryCache):
    """
    In-process cache with per-entry expiry.

    Thread-safe; one instance may be shared by sessions on several threads.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        time_fn: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._time = time_fn
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._time() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._time() + self._ttl, value)

    def invalidate(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
