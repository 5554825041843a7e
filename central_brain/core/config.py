"""Runtime configuration for the orchestration layer.

Values come from the process environment and an optional ``.env`` file.
Use ``get_settings()`` (cached) or the module-level ``settings`` object.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Orchestration layer settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "Central Brain"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool | None = None  # None = JSON outside development
    LOG_DIR: str | None = None

    # Caching
    ENABLE_CACHING: bool = True
    CACHE_TTL_S: float = Field(300.0, gt=0)
    CONTEXT_CACHE_MAX_ENTRIES: int = Field(50, gt=0)
    RESPONSE_CACHE_MAX_ENTRIES: int = Field(100, gt=0)
    RESPONSE_CACHE_EVICT_BATCH: int = Field(50, gt=0)

    # Deadlines (seconds, None = unbounded)
    REQUEST_TIMEOUT_S: float | None = 120.0
    PROVIDER_TIMEOUT_S: float = Field(60.0, gt=0)
    CONTEXT_TIMEOUT_S: float = Field(20.0, gt=0)

    # Routing
    MAX_FALLBACK_HOPS: int = Field(1, ge=0)
    DEFAULT_PROVIDER: str = "grok"
    DEFAULT_MODEL: str = "grok-4-0709"

    # Analyzer
    COMPLEXITY_LENGTH_THRESHOLD: int = Field(1000, gt=0)

    # Response quality heuristic
    QUALITY_HIGH_SCORE: int = 4
    QUALITY_MEDIUM_SCORE: int = 2
    QUALITY_SHORT_LENGTH: int = 100
    QUALITY_LONG_LENGTH: int = 500
    QUALITY_RELEVANCE_RATIO: float = Field(0.3, ge=0.0, le=1.0)

    # Provider backends
    GROK_API_KEY: str | None = None
    GROK_API_URL: str = "https://api.x.ai/v1/chat/completions"
    GROK_DEFAULT_MODEL: str = "grok-4-0709"
    GOOGLE_API_KEY: str | None = None
    GOOGLE_API_URL: str = "https://generativelanguage.googleapis.com/v1beta/models"
    GOOGLE_DEFAULT_MODEL: str = "gemini-2.0-flash"
    PROVIDER_TEMPERATURE: float = Field(0.7, ge=0.0, le=2.0)
    MAX_OUTPUT_TOKENS: int = Field(6000, gt=0)

    # Preferences
    PREFERENCES_PATH: Path = Path.home() / ".central_brain" / "ai_preferences.json"

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


settings = get_settings()
