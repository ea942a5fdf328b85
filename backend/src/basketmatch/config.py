"""Application configuration via environment variables.

Provides type-safe settings loading using pydantic-settings.
Environment variables can be loaded from a .env file.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    All settings have sensible defaults for development.

    Environment Variables:
        DATABASE_URL: Feedback/learned-alias store connection string
        LOG_LEVEL: Logging level (default INFO)
        LOG_JSON: Emit JSON log lines (default True)
        FUZZY_THRESHOLD: Minimum similarity accepted by the fuzzy stage
        LEARNED_ACCEPT_THRESHOLD: Minimum weight for a learned alias to resolve
        PROMOTION_THRESHOLD: Identical corrections needed to learn an alias
        MAX_BATCH_SIZE: Largest grocery list accepted in one call
        BATCH_WORKERS: Worker threads used to resolve a grocery list
    """

    # Feedback store
    DATABASE_URL: str = "sqlite:///basketmatch.db"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Matching
    FUZZY_THRESHOLD: float = 0.6
    LEARNED_ACCEPT_THRESHOLD: float = 0.8
    PROMOTION_THRESHOLD: int = 3
    MAX_BATCH_SIZE: int = 100
    BATCH_WORKERS: int = 1

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
