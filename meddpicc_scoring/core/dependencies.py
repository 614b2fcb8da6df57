"""
Dependencies - MEDDPICC Scoring Engine
meddpicc_scoring/core/dependencies.py

FastAPI dependency injection for the repository, store, cache and services.
"""

from functools import lru_cache

from meddpicc_scoring.config import get_settings
from meddpicc_scoring.models.enumerations import StorageBackend
from meddpicc_scoring.repositories.configuration_repository import (
    ConfigurationRepository,
    InMemoryConfigurationRepository,
)
from meddpicc_scoring.scoring.response_normalizer import ResponseNormalizer
from meddpicc_scoring.services.cache import get_cache
from meddpicc_scoring.services.configuration_store import ConfigurationStore
from meddpicc_scoring.services.score_cache import ScoreCache
from meddpicc_scoring.services.scoring_service import ScoringService
from meddpicc_scoring.services.validation import ConfigurationValidator


@lru_cache()
def get_configuration_repository() -> ConfigurationRepository:
    """Get cached repository for the configured storage backend."""
    settings = get_settings()
    if settings.STORAGE_BACKEND == StorageBackend.SNOWFLAKE:
        from meddpicc_scoring.repositories.snowflake_configuration_repository import (
            SnowflakeConfigurationRepository,
        )
        return SnowflakeConfigurationRepository()
    return InMemoryConfigurationRepository()


@lru_cache()
def get_configuration_validator() -> ConfigurationValidator:
    """Get cached ConfigurationValidator built from settings."""
    settings = get_settings()
    return ConfigurationValidator(
        policy=settings.WEIGHT_VALIDATION_POLICY,
        weight_total=settings.WEIGHT_TOTAL,
        tolerance=settings.WEIGHT_TOLERANCE,
    )


@lru_cache()
def get_configuration_store() -> ConfigurationStore:
    """Get cached ConfigurationStore instance."""
    return ConfigurationStore(get_configuration_repository(), get_configuration_validator())


@lru_cache()
def get_score_cache() -> ScoreCache:
    """Get cached process-wide ScoreCache instance."""
    settings = get_settings()
    return ScoreCache(
        ttl_seconds=settings.SCORE_CACHE_TTL_SECONDS,
        max_entries=settings.SCORE_CACHE_MAX_ENTRIES,
    )


@lru_cache()
def get_response_normalizer() -> ResponseNormalizer:
    """Get cached ResponseNormalizer instance."""
    return ResponseNormalizer()


@lru_cache()
def get_scoring_service() -> ScoringService:
    """Get cached ScoringService instance."""
    return ScoringService(
        store=get_configuration_store(),
        cache=get_score_cache(),
        normalizer=get_response_normalizer(),
        redis_cache=get_cache(),
    )


def reset_dependencies() -> None:
    """Drop every cached singleton (tests, settings reload)."""
    for getter in (
        get_configuration_repository,
        get_configuration_validator,
        get_configuration_store,
        get_score_cache,
        get_response_normalizer,
        get_scoring_service,
    ):
        getter.cache_clear()
