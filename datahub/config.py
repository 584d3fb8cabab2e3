from pathlib import Path
from typing import Optional, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =========================
# Configuration (ENV-DRIVEN via Pydantic)
# =========================


class Settings(BaseSettings):
    """Settings read from environment and validated by Pydantic.

    Only a single `.env` file at the project root is read. Real environment
    variables always take precedence over `.env` values.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        env_file=str(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
    )

    # Status server
    app_title: str = Field(default="Data Hub Status", alias="APP_TITLE")
    port: int = Field(default=8050, ge=1, le=65535, alias="PORT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Remote sources
    api_base_url: str = Field(default="", alias="API_BASE_URL")
    fallback_api_base_url: str = Field(default="", alias="FALLBACK_API_BASE_URL")
    request_timeout_seconds: float = Field(default=30.0, gt=0, alias="REQUEST_TIMEOUT_SECONDS")

    # Provider behaviour
    cache_timeout_seconds: float = Field(default=5 * 60, ge=0, alias="CACHE_TIMEOUT_SECONDS")
    max_retries: int = Field(default=0, ge=0, alias="MAX_RETRIES")
    fallback_enabled: bool = Field(default=True, alias="FALLBACK_ENABLED")
    graceful_degradation: bool = Field(default=True, alias="GRACEFUL_DEGRADATION")
    source_reopen_seconds: Optional[float] = Field(default=None, gt=0, alias="SOURCE_REOPEN_SECONDS")
    source_reopen_max_seconds: float = Field(default=5 * 60, gt=0, alias="SOURCE_REOPEN_MAX_SECONDS")

    # Persistent storage
    storage_backend: Literal["MEMORY", "FILE", "SQL"] = Field(default="FILE", alias="STORAGE_BACKEND")
    storage_path: str = Field(default=".datahub/store.json", alias="STORAGE_PATH")
    storage_db_url: str = Field(default="sqlite:///.datahub/store.db", alias="STORAGE_DB_URL")

    # Offline sync
    connectivity_probe_url: str = Field(default="", alias="CONNECTIVITY_PROBE_URL")
    connectivity_probe_interval_seconds: float = Field(default=30.0, gt=0, alias="CONNECTIVITY_PROBE_INTERVAL_SECONDS")
    sync_endpoint_url: str = Field(default="", alias="SYNC_ENDPOINT_URL")

    # Shared provider cache
    cache_type: Literal["SimpleCache", "RedisCache"] = Field(default="SimpleCache", alias="CACHE_TYPE")
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")

    @field_validator("storage_backend", "log_level", mode="before")
    @classmethod
    def _upper(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("source_reopen_seconds", mode="before")
    @classmethod
    def _blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


# Singleton accessor to avoid repeated disk reads/parsing
_settings_singleton: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the singleton Settings instance, initializing it on first call."""
    global _settings_singleton
    if _settings_singleton is None:
        _settings_singleton = Settings()
    return _settings_singleton


# Convenience module-level constants used by app.py when running as a script
PORT: int = get_settings().port
DEBUG: bool = get_settings().debug
