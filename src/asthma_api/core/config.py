"""Configuration management for the Asthma API.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at application
startup and is immutable during runtime.
"""

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables prefixed with
    ``ASTHMA_API_`` and from a local ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ASTHMA_API_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "Asthma API"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3001
    workers: int = 1

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./data/asthma.db"
    db_echo: bool = False

    # Token Settings
    jwt_secret: str | None = Field(
        default=None,
        description="Secret key for JWT signing. Required; the server refuses to start without it.",
    )
    jwt_issuer: str = "asthma-api"
    jwt_audience: str = "asthma-app"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7

    # Password Hashing
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Auth Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_max_attempts: int = Field(default=50, ge=1)
    rate_limit_window_seconds: int = Field(default=300, ge=1)

    # CORS Settings
    # NoDecode hands the raw env string to parse_cors_origins
    cors_origins: Annotated[list[str], NoDecode] = Field(default=["*"])
    cors_allow_credentials: bool = False
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    # Security Headers
    security_headers_enabled: bool = True
    hsts_max_age: int = 31536000
    csp_policy: str = "default-src 'self'; frame-ancestors 'none'"
    permissions_policy: str = "geolocation=(), camera=(), microphone=()"

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from a JSON list, comma-separated string or list."""
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("jwt_secret")
    @classmethod
    def blank_secret_is_missing(cls, v: str | None) -> str | None:
        """Treat an empty or whitespace-only secret as not configured."""
        if v is not None and not v.strip():
            return None
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once at startup; call ``get_settings.cache_clear()``
    to reload them (tests do this after changing the environment).

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
