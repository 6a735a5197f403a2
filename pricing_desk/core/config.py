"""Client settings and environment configuration loading."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TOKEN_FILE = Path.home() / ".pricing_desk" / "token"


class TokenStoreKind(str, Enum):
    """Where the bearer token is kept between process runs."""

    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


class Settings(BaseSettings):
    """Typed runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # REST API
    api_base_url: str = "http://localhost:8080"
    request_timeout_seconds: float = Field(default=15.0, ge=0)

    # Token persistence
    token_store: TokenStoreKind = TokenStoreKind.MEMORY
    token_file: Path = DEFAULT_TOKEN_FILE
    token_redis_url: str = "redis://localhost:6379/0"
    token_redis_key: str = "pricing-desk:auth-token"

    # Background list refresh
    poll_interval_seconds: float = Field(default=10.0, gt=0)

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_use_utc: bool = False

    @model_validator(mode="after")
    def _normalize(self) -> Self:
        base_url = self.api_base_url.strip().rstrip("/")
        if not base_url:
            raise ValueError("API_BASE_URL must be set and non-empty.")
        self.api_base_url = base_url
        self.log_level = self.log_level.strip().upper() or "INFO"
        return self


settings = Settings()
