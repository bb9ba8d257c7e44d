import redis
from typing import Optional, TypeVar, Type
from pydantic import BaseModel

from dashboard_engine.config import settings
from dashboard_engine.services.ttl_cache import TTLCache

T = TypeVar("T", bound=BaseModel)


class RedisTTLCache(TTLCache):
    """TTLCache backed by Redis; entries are pydantic JSON with SETEX expiry."""

    def __init__(self, url: Optional[str] = None, namespace: str = "dashboard"):
        self.namespace = namespace
        self.client = redis.from_url(
            url or settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
        )

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str, model: Type[T]) -> Optional[T]:
        """Get cached item and deserialize to Pydantic model."""
        data = self.client.get(self._key(key))
        if data:
            return model.model_validate_json(data)
        return None

    def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        """Cache Pydantic model with TTL."""
        self.client.setex(
            self._key(key),
            ttl_seconds,
            value.model_dump_json(),
        )

    def invalidate(self, key: str) -> None:
        self.client.delete(self._key(key))

    def invalidate_prefix(self, prefix: str) -> None:
        """Invalidate all keys under prefix."""
        for key in self.client.scan_iter(match=f"{self._key(prefix)}*"):
            self.client.delete(key)

    def clear(self) -> None:
        self.invalidate_prefix("")
