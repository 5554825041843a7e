"""
Provider Router
===============

Dispatches a request plus its assembled context to a provider backend,
with a response cache and bounded fallback to an alternate provider.

Design:
- Dispatch goes through a ProviderRegistry (tag → backend); no switch on tags
- Fallback is strictly sequential: the primary resolves fully before the
  alternate is tried, so two providers are never billed concurrently
- An explicit attempted set plus a hop budget (default one hop) bounds
  fallback no matter how many providers are registered
- The alternate must hold a valid credential; otherwise routing ends with
  AllProvidersExhaustedError
- Every provider call is clamped to the request deadline
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from dataclasses import dataclass
from typing import Any

from central_brain.core.config import settings
from central_brain.core.exceptions import (
    AllProvidersExhaustedError,
    DeadlineExceededError,
    ProviderCallError,
    ProviderError,
    ProviderUnavailableError,
)
from central_brain.infra.cache import ResponseCache, content_hash
from central_brain.infra.telemetry import get_logger
from central_brain.orchestration.deadline import RequestDeadline
from central_brain.orchestration.models import UniversalRequest
from central_brain.providers.base import (
    CallMeta,
    CredentialChecker,
    ProviderRegistry,
    SettingsCredentialChecker,
)

logger = get_logger(__name__)

# ── Data Contracts ───────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class RouteResult:
    """Raw provider text plus which provider actually produced it."""

    text: str
    provider: str
    model: str
    from_cache: bool = False
    attempts: tuple[str, ...] = ()
    latency_ms: float = 0.0

    @property
    def fallback_used(self) -> bool:
        return len(self.attempts) > 1

# ── Helpers ──────────────────────────────────────────────────────────────────

def build_prompt(content: str, context: str) -> str:
    if not context:
        return content
    return f"Context:\n{context}\n\n{content}"

def response_cache_key(provider: str, request: UniversalRequest) -> str:
    return f"{provider}_{request.kind}_{content_hash(request.content or '')}"

# ── Router ───────────────────────────────────────────────────────────────────

class ProviderRouter:
    """
    Routes requests to provider backends.

    Public API:
        - route()      → cached dispatch with bounded fallback
        - reset()      → drain the response cache
        - get_stats()  → observability
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        credentials: CredentialChecker | None = None,
        cache: ResponseCache[str] | None = None,
        max_fallback_hops: int | None = None,
        provider_timeout_s: float | None = None,
        enable_caching: bool | None = None,
    ):
        self._registry = registry
        self._credentials = credentials or SettingsCredentialChecker()
        self._cache: ResponseCache[str] = cache if cache is not None else ResponseCache(
            max_entries=settings.RESPONSE_CACHE_MAX_ENTRIES,
            default_ttl_s=settings.CACHE_TTL_S,
            evict_batch=settings.RESPONSE_CACHE_EVICT_BATCH,
        )
        self._max_hops = (
            settings.MAX_FALLBACK_HOPS if max_fallback_hops is None else max_fallback_hops
        )
        self._provider_timeout_s = provider_timeout_s or settings.PROVIDER_TIMEOUT_S
        self._enable_caching = (
            settings.ENABLE_CACHING if enable_caching is None else enable_caching
        )
        self._calls: Counter[str] = Counter()
        self._failures: Counter[str] = Counter()
        self._fallbacks = 0
        self._exhausted = 0

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def cache(self) -> ResponseCache[str]:
        return self._cache

    # ── Public API ───────────────────────────────────────────────────

    async def route(
        self,
        request: UniversalRequest,
        provider: str,
        context: str = "",
        *,
        model: str | None = None,
        deadline: RequestDeadline | None = None,
    ) -> RouteResult:
        """Return provider text for the request.

        Raises:
            AllProvidersExhaustedError: primary failed and no fallback succeeded.
            DeadlineExceededError: the request deadline ran out mid-route.
        """
        deadline = deadline or RequestDeadline.unbounded()
        prompt = build_prompt(request.content or "", context)
        attempted: list[str] = []
        hops_left = self._max_hops
        current = provider
        current_model = model or self._default_model(provider)
        last_error: ProviderError | None = None

        while True:
            key = response_cache_key(current, request)
            if self._enable_caching:
                cached = self._cache.get(key)
                if cached is not None:
                    logger.debug("response_cache_hit", provider=current, key=key)
                    return RouteResult(
                        text=cached,
                        provider=current,
                        model=current_model,
                        from_cache=True,
                        attempts=tuple(attempted) + (current,),
                    )

            attempted.append(current)
            t0 = time.perf_counter()
            try:
                text = await self._dispatch(current, current_model, prompt, request, deadline)
            except DeadlineExceededError:
                raise
            except ProviderError as exc:
                last_error = exc
            else:
                latency_ms = (time.perf_counter() - t0) * 1000
                if self._enable_caching:
                    self._cache.put(key, text)
                logger.info(
                    "route_complete",
                    provider=current,
                    model=current_model,
                    attempts=attempted,
                    latency_ms=round(latency_ms, 1),
                )
                return RouteResult(
                    text=text,
                    provider=current,
                    model=current_model,
                    attempts=tuple(attempted),
                    latency_ms=latency_ms,
                )

            self._failures[current] += 1
            logger.warning(
                "provider_failed",
                provider=current,
                error_code=last_error.error_code,
                detail=last_error.detail,
            )

            alternate = self._pick_alternate(current, attempted) if hops_left > 0 else None
            if alternate is None:
                self._exhausted += 1
                raise AllProvidersExhaustedError(
                    detail="Both providers unavailable",
                    attempted=tuple(attempted),
                    original_error=last_error,
                )

            hops_left -= 1
            self._fallbacks += 1
            logger.warning("fallback_engaged", primary=current, alternate=alternate)
            current = alternate
            current_model = self._default_model(alternate)

    def reset(self) -> None:
        self._cache.reset()

    def get_stats(self) -> dict[str, Any]:
        return {
            "providers": self._registry.tags(),
            "calls": dict(self._calls),
            "failures": dict(self._failures),
            "fallbacks": self._fallbacks,
            "exhausted": self._exhausted,
            "cache": self._cache.get_stats(),
        }

    # ── Internals ────────────────────────────────────────────────────

    def _default_model(self, tag: str) -> str:
        backend = self._registry.get(tag)
        return backend.default_model if backend is not None else ""

    def _pick_alternate(self, current: str, attempted: list[str]) -> str | None:
        for tag in self._registry.alternates(current):
            if tag in attempted:
                continue
            if self._credentials.has_valid_credential(tag):
                return tag
            logger.info("fallback_skipped", provider=tag, reason="no_valid_credential")
        return None

    async def _dispatch(
        self,
        tag: str,
        model: str,
        prompt: str,
        request: UniversalRequest,
        deadline: RequestDeadline,
    ) -> str:
        backend = self._registry.get(tag)
        if backend is None:
            raise ProviderUnavailableError(tag, detail=f"Provider '{tag}' is not registered")
        if not self._credentials.has_valid_credential(tag):
            raise ProviderUnavailableError(tag)

        deadline.check(f"provider:{tag}")
        timeout = deadline.timeout_for(self._provider_timeout_s)
        # The request deadline, not the provider cap, bounds this call
        deadline_bound = timeout is not None and timeout < self._provider_timeout_s
        meta = CallMeta(feature=request.metadata.feature, kind=request.kind, model=model)
        self._calls[tag] += 1

        try:
            return await asyncio.wait_for(backend.call(prompt, meta), timeout=timeout)
        except TimeoutError as exc:
            if deadline_bound or deadline.is_expired:
                raise DeadlineExceededError(stage=f"provider:{tag}") from exc
            raise ProviderCallError(
                f"Provider call timed out after {timeout}s", provider=tag, original_error=exc,
            ) from exc
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderCallError(str(exc) or type(exc).__name__, provider=tag, original_error=exc) from exc
