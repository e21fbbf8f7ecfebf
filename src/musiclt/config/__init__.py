"""Configuration module for music.lt backend."""

from .settings import (
    AuthSettings,
    DatabaseSettings,
    LoggingSettings,
    RelationSettings,
    Settings,
    TranslationSettings,
    get_settings,
)

__all__ = [
    "AuthSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "RelationSettings",
    "Settings",
    "TranslationSettings",
    "get_settings",
]
