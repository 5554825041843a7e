"""
Context Orchestrator
====================

Concurrently gathers the supporting context a request needs before it is
routed to a provider.

Design:
- Fan-out/join: one asyncio task per required category, all launched together
- Each fetch is independently fault tolerant; a failure omits the category
  and is logged, never raised
- Categories are pluggable: ``register_fetcher(category, fn)`` adds or
  replaces one without touching the fan-out
- Bounded by the request deadline; outstanding fetches are cancelled when it
  runs out and whatever already settled is returned
- Results are cached per (content hash, sorted categories, feature)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Protocol

from central_brain.core.config import settings
from central_brain.core.exceptions import ContextFetchError
from central_brain.core.types import ContextCategory
from central_brain.infra.cache import ContextCache, content_hash
from central_brain.infra.telemetry import get_logger
from central_brain.orchestration.deadline import RequestDeadline
from central_brain.orchestration.models import ProcessingContext, UniversalRequest

logger = get_logger(__name__)

ContextFetcher = Callable[[UniversalRequest], Awaitable[str]]

_CONTEXT_LABELS: dict[ContextCategory, str] = {
    ContextCategory.REGULATORY: "Regulatory Context",
    ContextCategory.DOCUMENT: "Document Context",
    ContextCategory.HISTORICAL: "Historical Context",
}

# ── Protocols ────────────────────────────────────────────────────────────────

class KnowledgeSource(Protocol):
    """Domain-knowledge lookup collaborator."""

    async def get_context(
        self,
        query: str,
        *,
        is_preliminary: bool = False,
        feature: str = "",
    ) -> str:
        ...

# ── Helpers ──────────────────────────────────────────────────────────────────

def combine_context(context: ProcessingContext) -> str:
    """Labeled blocks in fixed order, regardless of fetch completion order."""
    parts: list[str] = []
    for category in ContextCategory:
        value = context.get(category)
        if value:
            parts.append(f"{_CONTEXT_LABELS[category]}:\n{value}")
    return "\n\n".join(parts)

def context_cache_key(request: UniversalRequest, categories: Iterable[ContextCategory]) -> str:
    return "_".join((
        content_hash(request.content or ""),
        ",".join(sorted(c.value for c in categories)),
        request.metadata.feature,
    ))

# ── Orchestrator ─────────────────────────────────────────────────────────────

class ContextOrchestrator:
    """
    Gathers ProcessingContext for a request.

    Public API:
        - gather_context()    → fan-out/join over required categories
        - register_fetcher()  → plug in a category
        - reset()             → drain the context cache
        - get_stats()         → observability
    """

    def __init__(
        self,
        knowledge_source: KnowledgeSource | None = None,
        cache: ContextCache[ProcessingContext] | None = None,
        fetch_timeout_s: float | None = None,
        enable_caching: bool | None = None,
    ):
        self._knowledge = knowledge_source
        self._cache: ContextCache[ProcessingContext] = cache if cache is not None else ContextCache(
            max_entries=settings.CONTEXT_CACHE_MAX_ENTRIES,
            default_ttl_s=settings.CACHE_TTL_S,
        )
        self._fetch_timeout_s = fetch_timeout_s or settings.CONTEXT_TIMEOUT_S
        self._enable_caching = (
            settings.ENABLE_CACHING if enable_caching is None else enable_caching
        )
        self._fetchers: dict[ContextCategory, ContextFetcher] = {
            ContextCategory.REGULATORY: self._fetch_regulatory,
            ContextCategory.DOCUMENT: self._fetch_document,
            ContextCategory.HISTORICAL: self._fetch_historical,
        }
        self._gathers = 0
        self._fetches = 0
        self._fetch_failures = 0
        self._timeouts = 0

    @property
    def cache(self) -> ContextCache[ProcessingContext]:
        return self._cache

    def register_fetcher(self, category: ContextCategory, fetcher: ContextFetcher) -> None:
        self._fetchers[category] = fetcher

    # ── Public API ───────────────────────────────────────────────────

    async def gather_context(
        self,
        request: UniversalRequest,
        categories: Iterable[ContextCategory],
        deadline: RequestDeadline | None = None,
    ) -> ProcessingContext:
        categories = tuple(dict.fromkeys(categories))
        self._gathers += 1
        if not categories:
            return ProcessingContext()

        key = context_cache_key(request, categories)
        if self._enable_caching:
            cached = self._cache.get(key)
            if cached is not None:
                logger.debug("context_cache_hit", key=key)
                return cached.copy()

        context = ProcessingContext()
        tasks: dict[asyncio.Task[str], ContextCategory] = {}
        for category in categories:
            fetcher = self._fetchers.get(category)
            if fetcher is None:
                logger.warning("context_category_unregistered", category=category.value)
                continue
            task = asyncio.create_task(fetcher(request), name=f"context:{category.value}")
            tasks[task] = category
        self._fetches += len(tasks)

        if not tasks:
            return context

        timeout = (deadline or RequestDeadline.unbounded()).timeout_for(self._fetch_timeout_s)
        done, pending = await asyncio.wait(tasks, timeout=timeout)

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            self._timeouts += len(pending)
            for task in pending:
                self._record_failure(ContextFetchError(
                    detail=f"Context fetch timed out after {timeout}s",
                    category=tasks[task].value,
                ))

        failed = 0
        for task in done:
            category = tasks[task]
            exc = task.exception()
            if exc is not None:
                failed += 1
                self._record_failure(ContextFetchError(
                    detail=str(exc) or type(exc).__name__,
                    category=category.value,
                    original_error=exc,
                ))
                continue
            value = task.result()
            if value:
                context.set(category, value)

        # A degraded (timed out or failed) result is not cached
        if self._enable_caching and not pending and not failed:
            self._cache.put(key, context.copy())

        logger.info(
            "context_gathered",
            categories=[c.value for c in categories],
            found=[c.value for c in categories if context.get(c)],
            timed_out=len(pending),
            failed=failed,
        )
        return context

    def reset(self) -> None:
        self._cache.reset()

    def get_stats(self) -> dict[str, Any]:
        return {
            "gathers": self._gathers,
            "fetches": self._fetches,
            "fetch_failures": self._fetch_failures,
            "timeouts": self._timeouts,
            "cache": self._cache.get_stats(),
        }

    # ── Category fetchers ────────────────────────────────────────────

    async def _fetch_regulatory(self, request: UniversalRequest) -> str:
        if self._knowledge is None:
            return ""
        return await self._knowledge.get_context(
            request.content,
            is_preliminary=False,
            feature=request.metadata.feature,
        )

    async def _fetch_document(self, request: UniversalRequest) -> str:
        # File extraction lives in FileAdapter, not here
        return ""

    async def _fetch_historical(self, request: UniversalRequest) -> str:
        # No conversational memory store is wired in at this layer
        return ""

    def _record_failure(self, error: ContextFetchError) -> None:
        self._fetch_failures += 1
        logger.warning(
            "context_fetch_failed",
            category=error.category,
            error_code=error.error_code,
            detail=error.detail,
        )
