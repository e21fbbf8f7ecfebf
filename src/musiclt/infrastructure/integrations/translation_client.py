"""Translation client backed by the Anthropic Messages API."""

import logging
from typing import Any

import httpx

from musiclt.config.settings import TranslationSettings
from musiclt.domain.exceptions import ConfigurationError
from musiclt.domain.ports import ITranslationClient, TranslationResult

logger = logging.getLogger(__name__)

PROMPT = "Translate to Lithuanian. Return ONLY the translation:\n\n{text}"

# Error codes surfaced to the admin UI
ERROR_FETCH = "FETCH_ERROR"
ERROR_EMPTY_RESPONSE = "EMPTY_RESPONSE"


class TranslationClient(ITranslationClient):
    """Translates artist bios and album descriptions to Lithuanian."""

    # Hey future me, the httpx client is created lazily (same as every other HTTP client we
    # have): creating AsyncClient at import/construct time binds it to whatever loop is
    # around, which bites in tests. transport is only for tests (httpx.MockTransport).
    def __init__(
        self,
        settings: TranslationSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize translation client.

        Args:
            settings: Translation configuration settings
            transport: Optional httpx transport override
        """
        self.settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.timeout, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # Listen up: failures upstream are NOT exceptions here. The admin form shows the
    # original text plus an error code and lets the editor carry on. Only a missing API
    # key raises, because that's our misconfiguration and retrying won't help.
    async def translate(self, text: str) -> TranslationResult:
        """Translate text to Lithuanian.

        Args:
            text: Source text (truncated to max_input_chars)

        Returns:
            TranslationResult; on failure text is the untouched input

        Raises:
            ConfigurationError: If no API key is configured
        """
        if not self.settings.api_key:
            raise ConfigurationError("Translation API key not configured")

        if not text or not text.strip():
            return TranslationResult(text="", ok=False)

        payload: dict[str, Any] = {
            "model": self.settings.model,
            "max_tokens": self.settings.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": PROMPT.format(
                        text=text[: self.settings.max_input_chars]
                    ),
                }
            ],
        }
        headers = {
            "x-api-key": self.settings.api_key,
            "anthropic-version": self.settings.api_version,
            "content-type": "application/json",
        }

        client = await self._get_client()
        try:
            response = await client.post(
                self.settings.api_url, json=payload, headers=headers
            )
        except httpx.HTTPError as e:
            logger.warning("Translation request failed: %s", e)
            return TranslationResult(text=text, ok=False, error=ERROR_FETCH)

        if response.status_code >= 400:
            logger.warning(
                "Translation API returned %d: %s",
                response.status_code,
                response.text[:200],
            )
            return TranslationResult(
                text=text, ok=False, error=f"HTTP_{response.status_code}"
            )

        try:
            data = response.json()
        except ValueError:
            logger.warning("Translation API returned non-JSON body")
            return TranslationResult(text=text, ok=False, error=ERROR_FETCH)

        translated = _first_text_block(data)
        if not translated:
            return TranslationResult(text=text, ok=False, error=ERROR_EMPTY_RESPONSE)

        logger.debug("Translated %d chars", len(text))
        return TranslationResult(text=translated, ok=True)


def _first_text_block(data: Any) -> str:
    """Extract content[0].text from a Messages API response."""
    if not isinstance(data, dict):
        return ""
    content = data.get("content") or []
    if not content or not isinstance(content[0], dict):
        return ""
    return str(content[0].get("text") or "").strip()
