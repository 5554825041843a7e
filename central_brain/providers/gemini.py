"""Google Gemini backend (``generateContent`` over httpx)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from central_brain.core.config import Settings, settings
from central_brain.core.exceptions import ProviderCallError
from central_brain.core.types import ProviderTag
from central_brain.providers.base import CallMeta

logger = logging.getLogger(__name__)

class GeminiBackend:
    """Calls ``{endpoint}/{model}:generateContent`` with an API-key header."""

    name = ProviderTag.GOOGLE.value

    def __init__(
        self,
        api_key: str | None = None,
        *,
        api_url: str | None = None,
        default_model: str | None = None,
        client: httpx.AsyncClient | None = None,
        config: Settings | None = None,
    ):
        cfg = config or settings
        self._api_key = api_key if api_key is not None else cfg.GOOGLE_API_KEY
        self._api_url = (api_url or cfg.GOOGLE_API_URL).rstrip("/")
        self.default_model = default_model or cfg.GOOGLE_DEFAULT_MODEL
        self._temperature = cfg.PROVIDER_TEMPERATURE
        self._max_tokens = cfg.MAX_OUTPUT_TOKENS
        self._timeout_s = cfg.PROVIDER_TIMEOUT_S
        self._client = client

    def endpoint_for(self, model: str) -> str:
        return f"{self._api_url}/{model}:generateContent"

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self._temperature,
                "maxOutputTokens": self._max_tokens,
                "topP": 0.9,
            },
        }

    async def call(self, prompt: str, meta: CallMeta) -> str:
        if not self._api_key:
            raise ProviderCallError("No Google API key configured", provider=self.name)

        url = self.endpoint_for(meta.model or self.default_model)
        headers = {
            "Content-Type": "application/json",
            "X-goog-api-key": self._api_key,
        }
        payload = self.build_payload(prompt)

        try:
            if self._client is not None:
                response = await self._client.post(url, headers=headers, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                    response = await client.post(url, headers=headers, json=payload)
        except httpx.RequestError as exc:
            raise ProviderCallError(
                f"Google API request failed: {exc}", provider=self.name, original_error=exc,
            ) from exc

        if response.is_error:
            logger.error("Google API request failed: %s %s", response.status_code, response.text)
            raise ProviderCallError(
                f"Google API request failed: {response.status_code} {response.text}",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderCallError(
                "Invalid Google API response structure", provider=self.name, original_error=exc,
            ) from exc

        if not isinstance(text, str) or not text.strip():
            raise ProviderCallError("Empty response from Google API", provider=self.name)
        return text
