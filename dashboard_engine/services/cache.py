"""
Cache Service Singleton - Sales Dashboard Engine
dashboard_engine/services/cache.py

Provides the singleton hierarchy cache with TTL constants.
Uses Redis when CACHE_BACKEND=redis and the server answers, otherwise an
in-memory cache with a background sweeper.
"""
import logging
import redis
from typing import Optional

from dashboard_engine.config import settings
from dashboard_engine.services.redis_cache import RedisTTLCache
from dashboard_engine.services.ttl_cache import InMemoryTTLCache, TTLCache

logger = logging.getLogger(__name__)

# TTL constants (in seconds)
TTL_ROLE_HIERARCHY = settings.HIERARCHY_CACHE_TTL_SECONDS   # 30 minutes
SWEEP_INTERVAL = settings.HIERARCHY_CACHE_SWEEP_SECONDS     # 5 minutes

# Singleton instance
_cache: Optional[TTLCache] = None


def get_hierarchy_cache() -> TTLCache:
    """
    Get or create the hierarchy cache.

    Returns:
        RedisTTLCache if configured and reachable, InMemoryTTLCache otherwise.

    Note:
        Falls back to the in-memory cache if Redis is unavailable, so scope
        resolution keeps working without a shared cache.
    """
    global _cache
    if _cache is None:
        if settings.CACHE_BACKEND == "redis":
            try:
                candidate = RedisTTLCache()
                candidate.client.ping()  # Test connection
                _cache = candidate
            except (redis.RedisError, ConnectionError) as exc:
                logger.warning(
                    "redis_unavailable_using_memory_cache",
                    extra={"redis_url": settings.REDIS_URL, "error": str(exc)},
                )
        if _cache is None:
            memory = InMemoryTTLCache()
            memory.start_sweeper(SWEEP_INTERVAL)
            _cache = memory
    return _cache


def reset_hierarchy_cache() -> None:
    """
    Reset the cache singleton.

    Useful for testing or when Redis connection needs to be re-established.
    """
    global _cache
    if isinstance(_cache, InMemoryTTLCache):
        _cache.stop_sweeper()
    _cache = None
