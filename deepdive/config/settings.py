"""Settings for the store, fallback cache, LLM provider and application."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings read from the environment and an optional ``.env`` file."""

    # Database configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./deepdive.db",
        alias="DATABASE_URL",
    )
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")
    database_pool_size: int = Field(default=5, alias="DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(default=10, alias="DATABASE_MAX_OVERFLOW")

    # Remote store API (client side)
    store_api_url: Optional[str] = Field(default=None, alias="STORE_API_URL")
    store_timeout_seconds: float = Field(default=5.0, alias="STORE_TIMEOUT_SECONDS")
    store_max_attempts: int = Field(default=3, alias="STORE_MAX_ATTEMPTS")
    store_backoff_seconds: float = Field(default=2.0, alias="STORE_BACKOFF_SECONDS")

    # Fallback cache
    fallback_cache_backend: Literal["file", "memory", "redis"] = Field(
        default="file", alias="FALLBACK_CACHE_BACKEND"
    )
    fallback_cache_path: str = Field(
        default="./.deepdive/fallback_cache.json", alias="FALLBACK_CACHE_PATH"
    )
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    # LLM provider
    google_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    )
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    llm_temperature: float = Field(default=0.2, alias="LLM_TEMPERATURE")
    llm_max_output_tokens: Optional[int] = Field(default=None, alias="LLM_MAX_OUTPUT_TOKENS")

    # Degraded mode recovery
    degraded_recovery_enabled: bool = Field(default=True, alias="DEGRADED_RECOVERY_ENABLED")
    degraded_retry_interval_seconds: float = Field(
        default=30.0, alias="DEGRADED_RETRY_INTERVAL_SECONDS"
    )

    # Backups
    backup_dir: str = Field(default="./backups", alias="BACKUP_DIR")

    # Application configuration
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=True, alias="LOG_JSON")
    api_title: str = Field(default="DeepDive Store API", alias="API_TITLE")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=3001, alias="PORT")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate and normalize database URL."""
        # Convert sync SQLite URLs to async
        if v.startswith("sqlite:///") and "aiosqlite" not in v:
            v = v.replace("sqlite:///", "sqlite+aiosqlite:///")
        # Convert sync PostgreSQL URLs to async
        if v.startswith("postgres://"):
            v = v.replace("postgres://", "postgresql://", 1)
        if v.startswith("postgresql://") and "asyncpg" not in v:
            v = v.replace("postgresql://", "postgresql+asyncpg://")
        return v

    @field_validator("store_api_url")
    @classmethod
    def validate_store_api_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip().rstrip("/")

    @field_validator("store_max_attempts")
    @classmethod
    def validate_store_max_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("STORE_MAX_ATTEMPTS must be >= 1")
        return v

    @property
    def is_sqlite(self) -> bool:
        """Check if the database is SQLite."""
        return "sqlite" in self.database_url.lower()

    @property
    def is_postgresql(self) -> bool:
        """Check if the database is PostgreSQL."""
        return "postgresql" in self.database_url.lower()

    @property
    def uses_remote_store(self) -> bool:
        """Whether the store is reached over the HTTP API instead of a local engine."""
        return self.store_api_url is not None


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance (singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
