import redis
from typing import Optional, TypeVar, Type
from pydantic import BaseModel

from meddpicc_scoring.config import settings

T = TypeVar("T", bound=BaseModel)

SCORE_KEY_PREFIX = "meddpicc:score"


class RedisCache:
    """Shared score tier across API processes."""

    def __init__(self, url: Optional[str] = None):
        self.client = redis.from_url(
            url or settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
        )

    def get(self, key: str, model: Type[T]) -> Optional[T]:
        """Get cached item and deserialize to Pydantic model."""
        data = self.client.get(key)
        if data:
            return model.model_validate_json(data)
        return None

    def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        """Cache Pydantic model with TTL."""
        self.client.setex(
            key,
            ttl_seconds,
            value.model_dump_json(),
        )

    def delete_pattern(self, pattern: str) -> int:
        """Invalidate all keys matching pattern."""
        deleted = 0
        for key in self.client.scan_iter(match=pattern):
            deleted += self.client.delete(key)
        return deleted


def score_key(entity_id: str, organization_id: str, config_version: int, digest: str) -> str:
    return f"{SCORE_KEY_PREFIX}:{organization_id}:{entity_id}:v{config_version}:{digest}"
