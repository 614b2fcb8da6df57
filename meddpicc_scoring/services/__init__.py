"""
Services module for the MEDDPICC Scoring Engine.
"""

from meddpicc_scoring.services.cache import get_cache
from meddpicc_scoring.services.configuration_store import ConfigurationStore
from meddpicc_scoring.services.redis_cache import RedisCache
from meddpicc_scoring.services.score_cache import CacheSweeper, ScoreCache
from meddpicc_scoring.services.scoring_service import ScoringService

__all__ = [
    "get_cache",
    "CacheSweeper",
    "ConfigurationStore",
    "RedisCache",
    "ScoreCache",
    "ScoringService",
]
