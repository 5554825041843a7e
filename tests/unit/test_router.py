"""
Provider Router — Unit Tests
============================

Registry dispatch, prompt construction, response caching, bounded
fallback and deadline handling.
"""

import pytest

from central_brain.core.exceptions import (
    AllProvidersExhaustedError,
    DeadlineExceededError,
)
from central_brain.core.types import RequestKind
from central_brain.infra.cache import ResponseCache
from central_brain.orchestration.deadline import RequestDeadline
from central_brain.orchestration.router import (
    ProviderRouter,
    build_prompt,
    response_cache_key,
)
from central_brain.providers.base import ProviderRegistry

from fakes import FakeBackend, FakeCredentials, make_request


def make_router(*backends, valid=("grok", "google", "third"), **kwargs):
    return ProviderRouter(
        registry=ProviderRegistry(list(backends)),
        credentials=FakeCredentials(valid),
        **kwargs,
    )


class TestDispatch:
    @pytest.mark.asyncio
    async def test_routes_to_chosen_provider(self):
        grok = FakeBackend("grok", "hello from grok")
        router = make_router(grok, FakeBackend("google"))
        result = await router.route(make_request("hi"), "grok", model="grok-4-0709")
        assert result.text == "hello from grok"
        assert result.provider == "grok"
        assert result.model == "grok-4-0709"
        assert result.attempts == ("grok",)
        assert result.fallback_used is False
        prompt, meta = grok.calls[0]
        assert prompt == "hi"
        assert meta.kind == RequestKind.CHAT
        assert meta.feature == "chat"
        assert meta.model == "grok-4-0709"

    @pytest.mark.asyncio
    async def test_context_is_prepended_as_labeled_block(self):
        grok = FakeBackend("grok")
        router = make_router(grok)
        await router.route(make_request("hi"), "grok", "Regulatory Context:\nR")
        assert grok.calls[0][0] == "Context:\nRegulatory Context:\nR\n\nhi"

    def test_build_prompt_without_context(self):
        assert build_prompt("hi", "") == "hi"

    @pytest.mark.asyncio
    async def test_model_defaults_to_backend_default(self):
        router = make_router(FakeBackend("grok", default_model="grok-x"))
        result = await router.route(make_request("hi"), "grok")
        assert result.model == "grok-x"


class TestResponseCache:
    @pytest.mark.asyncio
    async def test_identical_request_calls_backend_once(self):
        grok = FakeBackend("grok")
        router = make_router(grok)
        first = await router.route(make_request("hi"), "grok")
        second = await router.route(make_request("hi"), "grok")
        assert len(grok.calls) == 1
        assert second.from_cache is True
        assert second.text == first.text

    @pytest.mark.asyncio
    async def test_different_provider_is_a_different_key(self):
        grok, google = FakeBackend("grok"), FakeBackend("google")
        router = make_router(grok, google)
        await router.route(make_request("hi"), "grok")
        await router.route(make_request("hi"), "google")
        assert len(grok.calls) == len(google.calls) == 1

    @pytest.mark.asyncio
    async def test_caching_disabled(self):
        grok = FakeBackend("grok")
        router = make_router(grok, enable_caching=False)
        await router.route(make_request("hi"), "grok")
        await router.route(make_request("hi"), "grok")
        assert len(grok.calls) == 2

    @pytest.mark.asyncio
    async def test_reset_drains_cache(self):
        grok = FakeBackend("grok")
        cache = ResponseCache(max_entries=10)
        router = make_router(grok, cache=cache)
        await router.route(make_request("hi"), "grok")
        assert response_cache_key("grok", make_request("hi")) in cache
        router.reset()
        await router.route(make_request("hi"), "grok")
        assert len(grok.calls) == 2


class TestFallback:
    @pytest.mark.asyncio
    async def test_primary_failure_falls_back_once(self):
        grok = FakeBackend("grok", fail=True)
        google = FakeBackend("google", "from google", default_model="gemini-2.0-flash")
        router = make_router(grok, google)
        result = await router.route(make_request("hi"), "grok", "CTX", model="grok-4-0709")
        assert result.provider == "google"
        assert result.model == "gemini-2.0-flash"
        assert result.text == "from google"
        assert result.attempts == ("grok", "google")
        assert result.fallback_used is True
        assert len(grok.calls) == 1 and len(google.calls) == 1
        # Same context goes to the alternate
        assert google.calls[0][0] == "Context:\nCTX\n\nhi"
        assert router.get_stats()["fallbacks"] == 1

    @pytest.mark.asyncio
    async def test_alternate_without_credentials_is_terminal(self):
        grok = FakeBackend("grok", fail=True)
        google = FakeBackend("google")
        router = make_router(grok, google, valid=("grok",))
        with pytest.raises(AllProvidersExhaustedError) as exc_info:
            await router.route(make_request("hi"), "grok")
        assert exc_info.value.detail == "Both providers unavailable"
        assert exc_info.value.attempted == ("grok",)
        assert google.calls == []

    @pytest.mark.asyncio
    async def test_both_fail_is_terminal(self):
        grok, google = FakeBackend("grok", fail=True), FakeBackend("google", fail=True)
        router = make_router(grok, google)
        with pytest.raises(AllProvidersExhaustedError) as exc_info:
            await router.route(make_request("hi"), "grok")
        assert exc_info.value.attempted == ("grok", "google")
        assert len(grok.calls) == 1 and len(google.calls) == 1

    @pytest.mark.asyncio
    async def test_fallback_is_bounded_with_many_providers(self):
        backends = [FakeBackend(n, fail=True) for n in ("grok", "google", "third")]
        router = make_router(*backends)
        with pytest.raises(AllProvidersExhaustedError):
            await router.route(make_request("hi"), "grok")
        assert [len(b.calls) for b in backends] == [1, 1, 0]

    @pytest.mark.asyncio
    async def test_zero_hops_disables_fallback(self):
        grok, google = FakeBackend("grok", fail=True), FakeBackend("google")
        router = make_router(grok, google, max_fallback_hops=0)
        with pytest.raises(AllProvidersExhaustedError):
            await router.route(make_request("hi"), "grok")
        assert google.calls == []

    @pytest.mark.asyncio
    async def test_primary_without_credentials_falls_back(self):
        grok, google = FakeBackend("grok"), FakeBackend("google", "from google")
        router = make_router(grok, google, valid=("google",))
        result = await router.route(make_request("hi"), "grok")
        assert result.provider == "google"
        assert grok.calls == []

    @pytest.mark.asyncio
    async def test_neither_provider_has_credentials(self):
        grok, google = FakeBackend("grok"), FakeBackend("google")
        router = make_router(grok, google, valid=())
        with pytest.raises(AllProvidersExhaustedError):
            await router.route(make_request("hi"), "grok")
        assert grok.calls == [] and google.calls == []

    @pytest.mark.asyncio
    async def test_unregistered_primary_falls_back(self):
        google = FakeBackend("google", "from google")
        router = make_router(google)
        result = await router.route(make_request("hi"), "grok")
        assert result.provider == "google"

    @pytest.mark.asyncio
    async def test_provider_timeout_triggers_fallback(self):
        grok = FakeBackend("grok", delay=5.0)
        google = FakeBackend("google", "from google")
        router = make_router(grok, google, provider_timeout_s=0.05)
        result = await router.route(make_request("hi"), "grok")
        assert result.provider == "google"


class TestDeadline:
    @pytest.mark.asyncio
    async def test_expired_deadline_raises(self):
        grok = FakeBackend("grok")
        router = make_router(grok)
        with pytest.raises(DeadlineExceededError):
            await router.route(make_request("hi"), "grok", deadline=RequestDeadline(total_s=0))
        assert grok.calls == []

    @pytest.mark.asyncio
    async def test_deadline_bounded_call_does_not_fall_back(self):
        grok, google = FakeBackend("grok", delay=5.0), FakeBackend("google")
        router = make_router(grok, google, provider_timeout_s=30)
        with pytest.raises(DeadlineExceededError):
            await router.route(make_request("hi"), "grok", deadline=RequestDeadline(total_s=0.05))
        assert google.calls == []

    def test_deadline_clamps_stage_cap(self):
        assert RequestDeadline.unbounded().timeout_for(7.0) == 7.0
        assert RequestDeadline.unbounded().remaining_s is None
        assert RequestDeadline(total_s=1.0).timeout_for(30.0) <= 1.0
        assert RequestDeadline(total_s=0).is_expired is True


class TestStats:
    @pytest.mark.asyncio
    async def test_counts_calls_and_failures(self):
        grok, google = FakeBackend("grok", fail=True), FakeBackend("google")
        router = make_router(grok, google)
        await router.route(make_request("hi"), "grok")
        stats = router.get_stats()
        assert stats["providers"] == ["grok", "google"]
        assert stats["calls"] == {"grok": 1, "google": 1}
        assert stats["failures"] == {"grok": 1}
        assert stats["exhausted"] == 0
