"""Grok backend (OpenAI-compatible chat completions over httpx)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from central_brain.core.config import Settings, settings
from central_brain.core.exceptions import ProviderCallError
from central_brain.core.types import ProviderTag
from central_brain.providers.base import CallMeta

logger = logging.getLogger(__name__)

class GrokBackend:
    """Calls the Grok chat-completions endpoint with a bearer key."""

    name = ProviderTag.GROK.value

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
        self._api_key = api_key if api_key is not None else cfg.GROK_API_KEY
        self._api_url = api_url or cfg.GROK_API_URL
        self.default_model = default_model or cfg.GROK_DEFAULT_MODEL
        self._temperature = cfg.PROVIDER_TEMPERATURE
        self._max_tokens = cfg.MAX_OUTPUT_TOKENS
        self._timeout_s = cfg.PROVIDER_TIMEOUT_S
        self._client = client

    def build_payload(self, prompt: str, model: str) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "top_p": 0.9,
            "stream": False,
        }

    async def call(self, prompt: str, meta: CallMeta) -> str:
        if not self._api_key:
            raise ProviderCallError("No Grok API key configured", provider=self.name)

        model = meta.model or self.default_model
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        payload = self.build_payload(prompt, model)

        try:
            if self._client is not None:
                response = await self._client.post(self._api_url, headers=headers, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                    response = await client.post(self._api_url, headers=headers, json=payload)
        except httpx.RequestError as exc:
            raise ProviderCallError(
                f"Grok API request failed: {exc}", provider=self.name, original_error=exc,
            ) from exc

        if response.is_error:
            logger.error("Grok API request failed: %s %s", response.status_code, response.text)
            raise ProviderCallError(
                f"Grok API request failed: {response.status_code} {response.text}",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            data = response.json()
            text = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderCallError(
                "Invalid Grok API response structure", provider=self.name, original_error=exc,
            ) from exc

        if not isinstance(text, str) or not text.strip():
            raise ProviderCallError("Empty response from Grok API", provider=self.name)
        return text
