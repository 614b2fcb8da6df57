"""Application configuration with comprehensive validation."""
from typing import Optional, Literal
from functools import lru_cache
from pydantic import Field, model_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from meddpicc_scoring.models.enumerations import StorageBackend, ValidationPolicy


class Settings(BaseSettings):
    """Application settings with production-grade validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "MEDDPICC Scoring Engine"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # API
    API_V1_PREFIX: str = "/api/v1"

    # Configuration store
    STORAGE_BACKEND: StorageBackend = StorageBackend.MEMORY
    WEIGHT_VALIDATION_POLICY: ValidationPolicy = ValidationPolicy.DRAFT
    WEIGHT_TOTAL: float = Field(default=100.0, gt=0)
    WEIGHT_TOLERANCE: float = Field(default=0.1, ge=0, le=5)

    # Snowflake (required only for the snowflake backend)
    SNOWFLAKE_ACCOUNT: Optional[str] = None
    SNOWFLAKE_USER: Optional[str] = None
    SNOWFLAKE_PASSWORD: Optional[SecretStr] = None
    SNOWFLAKE_DATABASE: Optional[str] = None
    SNOWFLAKE_SCHEMA: Optional[str] = None
    SNOWFLAKE_WAREHOUSE: Optional[str] = None
    SNOWFLAKE_ROLE: Optional[str] = None

    # Score cache
    SCORE_CACHE_TTL_SECONDS: int = Field(default=300, ge=1, le=86400)  # 5 minutes
    SCORE_CACHE_MAX_ENTRIES: int = Field(default=1000, ge=1)
    SCORE_CACHE_SWEEP_INTERVAL_SECONDS: float = Field(default=60.0, gt=0)

    # Redis (optional shared score tier)
    REDIS_ENABLED: bool = False
    REDIS_URL: str = "redis://localhost:6379/0"

    @model_validator(mode="after")
    def validate_snowflake_settings(self):
        """Ensure the snowflake backend has credentials."""
        if self.STORAGE_BACKEND == StorageBackend.SNOWFLAKE:
            missing = [
                name for name in ("SNOWFLAKE_ACCOUNT", "SNOWFLAKE_USER", "SNOWFLAKE_PASSWORD")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"Snowflake backend requires: {', '.join(missing)}")
        return self

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure production has required security settings."""
        if self.APP_ENV == "production":
            if self.DEBUG:
                raise ValueError("DEBUG must be False in production")
            if self.STORAGE_BACKEND == StorageBackend.MEMORY:
                raise ValueError("The memory backend is process-local; use snowflake in production")
        return self

@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
