"""
Provider Backends — Unit Tests
==============================

Wire payloads and error mapping for the Grok and Gemini backends (via
``httpx.MockTransport``), credential validation and the registry.
"""

import json

import httpx
import pytest

from central_brain.core.config import Settings
from central_brain.core.exceptions import ConfigurationError, ProviderCallError
from central_brain.core.types import RequestKind
from central_brain.providers import default_registry
from central_brain.providers.base import (
    CallMeta,
    ProviderBackend,
    ProviderRegistry,
    SettingsCredentialChecker,
    is_valid_google_key,
    is_valid_grok_key,
)
from central_brain.providers.gemini import GeminiBackend
from central_brain.providers.grok import GrokBackend

from fakes import FakeBackend

GOOGLE_KEY = "AIza" + "x" * 30


def meta(model: str = "") -> CallMeta:
    return CallMeta(feature="chat", kind=RequestKind.CHAT, model=model)


def client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestGrokBackend:
    @pytest.mark.asyncio
    async def test_request_shape_and_text(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": "hi there"}}]})

        async with client_for(handler) as client:
            backend = GrokBackend("xai-key", api_url="https://grok.test/v1/chat", client=client)
            text = await backend.call("hello", meta("grok-4-0709"))

        assert text == "hi there"
        assert seen["url"] == "https://grok.test/v1/chat"
        assert seen["auth"] == "Bearer xai-key"
        body = seen["body"]
        assert body["model"] == "grok-4-0709"
        assert body["messages"] == [{"role": "user", "content": "hello"}]
        assert body["top_p"] == 0.9
        assert body["max_tokens"] == 6000
        assert body["stream"] is False

    def test_max_tokens_follows_settings(self):
        config = Settings(_env_file=None, MAX_OUTPUT_TOKENS=8192)
        assert GrokBackend("k", config=config).build_payload("hi", "m")["max_tokens"] == 8192
        gemini = GeminiBackend(GOOGLE_KEY, config=config).build_payload("hi")
        assert gemini["generationConfig"]["maxOutputTokens"] == 8192

    @pytest.mark.asyncio
    async def test_default_model_when_meta_has_none(self):
        seen = {}

        def handler(request):
            seen["model"] = json.loads(request.content)["model"]
            return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

        async with client_for(handler) as client:
            backend = GrokBackend("k", default_model="grok-fallback", client=client)
            await backend.call("hello", meta())
        assert seen["model"] == "grok-fallback"

    @pytest.mark.asyncio
    async def test_http_error_maps_to_call_error(self):
        async with client_for(lambda r: httpx.Response(503, text="overloaded")) as client:
            backend = GrokBackend("k", client=client)
            with pytest.raises(ProviderCallError) as exc_info:
                await backend.call("hello", meta())
        assert exc_info.value.status_code == 503
        assert exc_info.value.provider == "grok"
        assert exc_info.value.allows_fallback is True

    @pytest.mark.asyncio
    async def test_invalid_structure(self):
        async with client_for(lambda r: httpx.Response(200, json={"choices": []})) as client:
            with pytest.raises(ProviderCallError, match="Invalid Grok API response structure"):
                await GrokBackend("k", client=client).call("hello", meta())

    @pytest.mark.asyncio
    async def test_empty_text(self):
        body = {"choices": [{"message": {"content": "   "}}]}
        async with client_for(lambda r: httpx.Response(200, json=body)) as client:
            with pytest.raises(ProviderCallError, match="Empty response from Grok API"):
                await GrokBackend("k", client=client).call("hello", meta())

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with client_for(handler) as client:
            with pytest.raises(ProviderCallError, match="Grok API request failed"):
                await GrokBackend("k", client=client).call("hello", meta())

    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(ProviderCallError):
            await GrokBackend("").call("hello", meta())

    def test_satisfies_backend_protocol(self):
        assert isinstance(GrokBackend("k"), ProviderBackend)


class TestGeminiBackend:
    @pytest.mark.asyncio
    async def test_request_shape_and_text(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers["x-goog-api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"candidates": [{"content": {"parts": [{"text": "bonjour"}]}}]},
            )

        async with client_for(handler) as client:
            backend = GeminiBackend(GOOGLE_KEY, api_url="https://gemini.test/models/", client=client)
            text = await backend.call("hello", meta("gemini-2.0-flash"))

        assert text == "bonjour"
        assert seen["url"] == "https://gemini.test/models/gemini-2.0-flash:generateContent"
        assert seen["key"] == GOOGLE_KEY
        assert seen["body"]["contents"] == [{"parts": [{"text": "hello"}]}]
        assert seen["body"]["generationConfig"]["topP"] == 0.9

    @pytest.mark.asyncio
    async def test_http_error(self):
        async with client_for(lambda r: httpx.Response(400, text="bad")) as client:
            with pytest.raises(ProviderCallError, match="Google API request failed: 400"):
                await GeminiBackend(GOOGLE_KEY, client=client).call("hello", meta())

    @pytest.mark.asyncio
    async def test_invalid_structure(self):
        async with client_for(lambda r: httpx.Response(200, json={"candidates": [{}]})) as client:
            with pytest.raises(ProviderCallError, match="Invalid Google API response structure"):
                await GeminiBackend(GOOGLE_KEY, client=client).call("hello", meta())

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        async with client_for(lambda r: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(ProviderCallError):
                await GeminiBackend(GOOGLE_KEY, client=client).call("hello", meta())


class TestCredentials:
    def test_google_key_rules(self):
        assert is_valid_google_key("AIza" + "x" * 16) is True
        assert is_valid_google_key("AIzaShort") is False
        assert is_valid_google_key("x" * 40) is False
        assert is_valid_google_key(None) is False

    def test_grok_key_rules(self):
        assert is_valid_grok_key("xai-abc") is True
        assert is_valid_grok_key("   ") is False
        assert is_valid_grok_key(None) is False

    def test_settings_checker(self):
        config = Settings(_env_file=None, GROK_API_KEY="xai-abc", GOOGLE_API_KEY="nope")
        checker = SettingsCredentialChecker(config)
        assert checker.has_valid_credential("grok") is True
        assert checker.has_valid_credential("google") is False
        assert checker.has_valid_credential("unknown") is False
        assert checker.get_stats() == {"grok": True, "google": False}


class TestRegistry:
    def test_registration_order_and_alternates(self):
        registry = ProviderRegistry([FakeBackend("grok"), FakeBackend("google"), FakeBackend("third")])
        assert registry.tags() == ["grok", "google", "third"]
        assert registry.alternates("google") == ["grok", "third"]
        assert "grok" in registry and len(registry) == 3

    def test_unregister_and_require(self):
        registry = ProviderRegistry([FakeBackend("grok")])
        registry.unregister("grok")
        assert registry.get("grok") is None
        with pytest.raises(ConfigurationError):
            registry.require("grok")

    def test_register_under_custom_tag(self):
        registry = ProviderRegistry()
        backend = FakeBackend("grok")
        registry.register(backend, tag="grok-eu")
        assert registry.require("grok-eu") is backend

    def test_default_registry(self):
        registry = default_registry()
        assert registry.tags() == ["grok", "google"]
        assert isinstance(registry.get("google"), GeminiBackend)
