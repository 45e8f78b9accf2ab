"""Application settings and configuration.

This module defines all configuration options for the Relay Chat application.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Relay Chat", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Session tokens
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Realtime database backend
    database_backend: Literal["memory", "sql"] = Field(default="memory", alias="DATABASE_BACKEND")
    database_url: str = Field(default="sqlite:///./relay_chat.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Redis is optional; without it send cooldowns are tracked per process
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # Message composition limits
    max_message_length: int = Field(default=70, alias="MAX_MESSAGE_LENGTH")
    hard_message_length: int = Field(default=3500, alias="HARD_MESSAGE_LENGTH")
    message_cooldown_seconds: int = Field(default=7, alias="MESSAGE_COOLDOWN_SECONDS")

    # Retention sweep
    retention_hours: int = Field(default=24, alias="RETENTION_HOURS")
    sweeper_enabled: bool = Field(default=True, alias="SWEEPER_ENABLED")
    sweep_initial_delay_seconds: float = Field(default=60.0, alias="SWEEP_INITIAL_DELAY_SECONDS")
    sweep_interval_seconds: float = Field(
        default=24 * 60 * 60,
        alias="SWEEP_INTERVAL_SECONDS",
    )

    # Story media hosting
    media_host_url: str = Field(
        default="https://catbox.moe/user/api.php",
        alias="MEDIA_HOST_URL",
    )
    media_upload_timeout_seconds: float = Field(
        default=60.0,
        alias="MEDIA_UPLOAD_TIMEOUT_SECONDS",
    )
    media_max_bytes: int = Field(default=10 * 1024 * 1024, alias="MEDIA_MAX_BYTES")

    # Identity directory
    address_prefix: str = Field(default="08", alias="ADDRESS_PREFIX")
    address_digits: int = Field(default=10, alias="ADDRESS_DIGITS")
    address_allocation_attempts: int = Field(default=5, alias="ADDRESS_ALLOCATION_ATTEMPTS")

    # Community conversation metadata
    community_name: str = Field(default="Relay Community", alias="COMMUNITY_NAME")
    community_description: str = Field(
        default="Community group for every Relay Chat user",
        alias="COMMUNITY_DESCRIPTION",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def retention_ms(self) -> int:
        """Return the retention horizon in milliseconds."""
        return self.retention_hours * 60 * 60 * 1000


settings = Settings()
