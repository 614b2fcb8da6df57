"""
Health Check Router - MEDDPICC Scoring Engine
meddpicc_scoring/routers/health.py
"""
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from meddpicc_scoring.config import get_settings
from meddpicc_scoring.core.dependencies import get_score_cache
from meddpicc_scoring.services.cache import get_cache
from meddpicc_scoring.services.score_cache import ScoreCache

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    storage_backend: str
    cache_size: int
    dependencies: Dict[str, str]


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Service status, storage backend and score cache size.",
)
async def health_check(cache: ScoreCache = Depends(get_score_cache)):
    settings = get_settings()
    dependencies = {"score_cache": "healthy"}
    if settings.REDIS_ENABLED:
        dependencies["redis"] = "healthy" if get_cache() is not None else "unavailable"

    return HealthResponse(
        status="healthy" if all(v == "healthy" for v in dependencies.values()) else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        storage_backend=settings.STORAGE_BACKEND.value,
        cache_size=len(cache),
        dependencies=dependencies,
    )
