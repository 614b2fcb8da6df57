"""
Cache Admin Router - MEDDPICC Scoring Engine
meddpicc_scoring/routers/cache.py
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from meddpicc_scoring.core.dependencies import get_score_cache, get_scoring_service
from meddpicc_scoring.services.score_cache import ScoreCache
from meddpicc_scoring.services.scoring_service import ScoringService

router = APIRouter(prefix="/api/v1/cache", tags=["Cache"])


class CacheClearResponse(BaseModel):
    cleared: int


class CacheStatsResponse(BaseModel):
    size: int
    max_entries: int
    ttl_seconds: float
    hits: int
    misses: int
    evictions: int
    expirations: int


@router.delete("", response_model=CacheClearResponse, summary="Clear the score cache")
async def clear_cache(service: ScoringService = Depends(get_scoring_service)) -> CacheClearResponse:
    return CacheClearResponse(cleared=service.clear_cache())


@router.get("/stats", response_model=CacheStatsResponse, summary="Score cache statistics")
async def cache_stats(cache: ScoreCache = Depends(get_score_cache)) -> CacheStatsResponse:
    return CacheStatsResponse(**cache.stats())
