"""
Cache Service Singleton - MEDDPICC Scoring Engine
meddpicc_scoring/services/cache.py

Provides the optional shared Redis score tier.
Gracefully handles Redis unavailability.
"""
import redis
import structlog
from typing import Optional

from meddpicc_scoring.config import settings
from meddpicc_scoring.services.redis_cache import RedisCache

logger = structlog.get_logger(__name__)

# Singleton instance
_cache: Optional[RedisCache] = None


def get_cache() -> Optional[RedisCache]:
    """
    Get or create Redis cache instance.

    Returns:
        RedisCache instance if Redis is enabled and available, None otherwise.

    Note:
        Returns None if Redis is unavailable, allowing the application
        to continue with the in-process cache only (graceful degradation).
    """
    global _cache
    if not settings.REDIS_ENABLED:
        return None
    if _cache is None:
        try:
            _cache = RedisCache()
            _cache.client.ping()  # Test connection
        except (redis.RedisError, ConnectionError) as e:
            logger.warning("redis_cache_unavailable", error=str(e))
            _cache = None
    return _cache


def reset_cache() -> None:
    """
    Reset the cache singleton.

    Useful for testing or when Redis connection needs to be re-established.
    """
    global _cache
    _cache = None
