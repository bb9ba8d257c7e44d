"""
TTL Cache - Sales Dashboard Engine
dashboard_engine/services/ttl_cache.py

Pluggable expiring cache for pydantic models. Entries expire lazily on
read; InMemoryTTLCache can also run a background sweeper thread that
evicts expired entries periodically.
"""
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class TTLCache(ABC):
    """Interface shared by the in-memory and Redis caches."""

    @abstractmethod
    def get(self, key: str, model: Type[T]) -> Optional[T]:
        """Cached item as `model`, or None when missing or expired."""

    @abstractmethod
    def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        """Cache item with TTL."""

    @abstractmethod
    def invalidate(self, key: str) -> None:
        """Invalidate single cache entry."""

    @abstractmethod
    def invalidate_prefix(self, prefix: str) -> None:
        """Invalidate all keys starting with prefix."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""


class InMemoryTTLCache(TTLCache):
    """Process-local TTL cache guarded by a lock."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, BaseModel]] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    def get(self, key: str, model: Type[T]) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
        if isinstance(value, model):
            return value
        return model.model_validate(value.model_dump())

    def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, value)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> None:
        with self._lock:
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ------------------------------------------------------------------
    # Background eviction
    # ------------------------------------------------------------------

    def sweep(self) -> int:
        """Evict expired entries now; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("ttl_cache_swept", extra={"evicted": len(expired)})
        return len(expired)

    def start_sweeper(self, interval_seconds: float) -> None:
        """Start the daemon sweeper thread (no-op if already running)."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop.clear()
        self._sweeper = threading.Thread(
            target=self._run_sweeper,
            args=(interval_seconds,),
            name="ttl-cache-sweeper",
            daemon=True,
        )
        self._sweeper.start()

    def stop_sweeper(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout)
            self._sweeper = None

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def _run_sweeper(self, interval_seconds: float) -> None:
        while not self._stop.wait(interval_seconds):
            self.sweep()
