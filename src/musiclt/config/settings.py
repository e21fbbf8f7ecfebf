"""Application settings loaded from environment variables via pydantic-settings.

Hey future me - every field can be overridden with an env var. Nested groups use a double
underscore: MUSICLT_DATABASE__URL, MUSICLT_AUTH__API_TOKENS='{"token": "admin"}',
MUSICLT_TRANSLATION__API_KEY, ... A .env file in the working directory is read too
(env vars win over .env).
"""

from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Database connection settings."""

    url: str = "sqlite+aiosqlite:///./musiclt.db"
    echo: bool = False
    pool_pre_ping: bool = True
    # Pool settings only apply to PostgreSQL
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    # Retry settings for "database is locked" errors
    lock_retry_attempts: int = Field(default=3, ge=1)
    lock_retry_base_delay: float = Field(default=0.1, ge=0.0)


class AuthSettings(BaseModel):
    """API token authentication.

    api_tokens maps a bearer token to a role (user, admin, super_admin).
    """

    api_tokens: dict[str, str] = Field(default_factory=dict)
    write_roles: tuple[str, ...] = ("admin", "super_admin")


class TranslationSettings(BaseModel):
    """Translation proxy settings (Anthropic Messages API)."""

    api_key: str = ""
    api_url: str = "https://api.anthropic.com/v1/messages"
    api_version: str = "2023-06-01"
    model: str = "claude-haiku-4-5"
    max_tokens: int = 1024
    max_input_chars: int = 700
    timeout: float = 30.0


class RelationSettings(BaseModel):
    """Relation synchronization settings."""

    # How many times a save is retried from a fresh snapshot after a version conflict
    max_attempts: int = Field(default=3, ge=1)


class LoggingSettings(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level


class Settings(BaseSettings):
    """music.lt backend settings."""

    model_config = SettingsConfigDict(
        env_prefix="MUSICLT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "musiclt"
    api_prefix: str = "/api"
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    translation: TranslationSettings = Field(default_factory=TranslationSettings)
    relations: RelationSettings = Field(default_factory=RelationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
