"""External service integrations."""

from musiclt.infrastructure.integrations.translation_client import TranslationClient

__all__ = ["TranslationClient"]
