from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

import structlog

from meddpicc_scoring.config import get_settings
from meddpicc_scoring.core.dependencies import get_score_cache
from meddpicc_scoring.core.exceptions import QualificationError
from meddpicc_scoring.core.logging import configure_logging
from meddpicc_scoring.services.score_cache import CacheSweeper

# IMPORT ROUTERS
from meddpicc_scoring.routers.errors import qualification_exception_handler, validation_exception_handler
from meddpicc_scoring.routers.health import router as health_router
from meddpicc_scoring.routers.configurations import router as configurations_router
from meddpicc_scoring.routers.scoring import router as scoring_router
from meddpicc_scoring.routers.cache import router as cache_router

logger = structlog.get_logger(__name__)
settings = get_settings()


# SWAGGER UI: tag display order
_OPENAPI_TAGS = [
    {"name": "Root"},
    {"name": "Health"},
    {"name": "Configurations"},
    {"name": "Scoring"},
    {"name": "Cache"},
]

# FASTAPI APPLICATION CONFIGURATION
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=_OPENAPI_TAGS,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

# REGISTER EXCEPTION HANDLERS
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(QualificationError, qualification_exception_handler)

# REGISTER ROUTERS (order matches _OPENAPI_TAGS / Swagger UI display order)
app.include_router(health_router)           # Health
app.include_router(configurations_router)   # Configurations
app.include_router(scoring_router)          # Scoring
app.include_router(cache_router)            # Cache

_sweeper = None


# ROOT ENDPOINT
@app.get("/", tags=["Root"], summary="Root endpoint")
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        },
        "status": "running"
    }


# STARTUP EVENT
@app.on_event("startup")
async def startup_event():
    global _sweeper
    configure_logging(settings)
    _sweeper = CacheSweeper(get_score_cache(), settings.SCORE_CACHE_SWEEP_INTERVAL_SECONDS)
    _sweeper.start()
    logger.info(
        "application_started",
        env=settings.APP_ENV,
        storage_backend=settings.STORAGE_BACKEND.value,
        weight_policy=settings.WEIGHT_VALIDATION_POLICY.value,
    )


# SHUTDOWN EVENT
@app.on_event("shutdown")
async def shutdown_event():
    global _sweeper
    if _sweeper is not None:
        _sweeper.stop()
        _sweeper = None
    logger.info("application_stopped")


# RUN WITH UVICORN
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "meddpicc_scoring.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
