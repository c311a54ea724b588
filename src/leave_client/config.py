"""Centralized client configuration via environment variables."""

from enum import StrEnum
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Client settings loaded from environment variables.

    Every field can be overridden with a ``LEAVE_CLIENT_`` prefixed
    variable, e.g. ``LEAVE_CLIENT_API_BASE_URL``.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEAVE_CLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- App ---
    environment: Environment = Environment.DEVELOPMENT
    log_level: str = "INFO"

    # --- Backend API ---
    api_base_url: str = "http://localhost:4000/api/v1"
    request_timeout: float = 30.0

    # --- Auth pipeline ---
    refresh_path: str = "/auth/refresh-token"
    tenant_header: str = "x-tenant-id"

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    # --- Convenience properties ---
    @property
    def is_dev(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_prod(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings singleton.

    Usage::

        from leave_client.config import get_settings
        settings = get_settings()
    """
    return Settings()
