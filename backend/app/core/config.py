"""
config.py — Centralized Application Configuration Loader

Purpose:
- Define a single source of truth for application settings.
- Load and validate environment variables from `.env` or OS environment.

Settings cover:
- Database connection used by the recalculation engine
- Logging level
- Engine fallbacks that are not stored per model (default share count)

This module does NOT:
- Execute any DB connections.
- Modify runtime settings.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py is at: backend/app/core/config.py
# .env should be at: backend/.env
_CONFIG_DIR = Path(__file__).parent  # backend/app/core
_BACKEND_DIR = _CONFIG_DIR.parent.parent  # backend
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    _ENV_FILE_PATH = str(_ENV_FILE.resolve())
else:
    # Fallback: relative path (pydantic will look in CWD)
    _ENV_FILE_PATH = ".env"


class Settings(BaseSettings):
    """
    Settings container for the modeling backend.
    """
    # Database
    DATABASE_URL: str = Field(
        "sqlite:///./finmodel.db",
        description="SQLAlchemy connection URL (postgresql://... or sqlite:///...)",
    )
    CREATE_TABLES_ON_STARTUP: bool = Field(
        True,
        description="Create missing tables when the API starts",
    )

    # Logging
    LOG_LEVEL: str = Field(
        "INFO",
        description="Root log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    # Concurrency
    MODEL_LOCK_TIMEOUT_SECONDS: float = Field(
        30.0,
        description="Seconds a request waits for another run on the same model to finish",
    )

    # Engine fallbacks
    DEFAULT_SHARES_OUTSTANDING: float = Field(
        50_000_000,
        description="Share count used when a model has none recorded",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Upper-case and strip the configured level."""
        if isinstance(v, str):
            return v.strip().upper() or "INFO"
        return v

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Singleton: every import shares this object.
settings = Settings()
