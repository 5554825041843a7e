"""
Central Brain — Orchestration Facade
====================================

Wires the pipeline stages into a single entry point:
  Stage 1 → RequestAnalyzer      (complexity, provider, context needs, strategy)
  Stage 2 → ContextOrchestrator  (concurrent context gathering, cached)
  Stage 3 → ProviderRouter       (cached dispatch with bounded fallback)
  Stage 4 → ResponseCoordinator  (clean, score, package)

Design:
- ``process_request()`` always returns a UniversalResponse; every failure is
  packaged by the coordinator with its error code
- Preferences are loaded from the PreferenceStore when a request has none
- One RequestDeadline per request, threaded through every suspension point
- Narrow convenience operations per feature kind populate ``kind`` and the
  default feature tag, then delegate
"""

from __future__ import annotations

import dataclasses
import time
import uuid
from collections.abc import Iterable
from typing import Any

from central_brain.core.config import settings
from central_brain.core.types import OutputFormat, RequestKind
from central_brain.infra.telemetry import (
    clear_request_context,
    get_logger,
    set_request_context,
    setup_logging,
)
from central_brain.orchestration.analyzer import RequestAnalyzer
from central_brain.orchestration.context import (
    ContextOrchestrator,
    KnowledgeSource,
    combine_context,
)
from central_brain.orchestration.coordinator import ResponseCoordinator
from central_brain.orchestration.deadline import RequestDeadline
from central_brain.orchestration.models import (
    AttachedFile,
    Preferences,
    RequestMetadata,
    UniversalRequest,
    UniversalResponse,
)
from central_brain.orchestration.router import ProviderRouter
from central_brain.preferences import PreferenceStore
from central_brain.providers import CredentialChecker, ProviderRegistry, default_registry

logger = get_logger(__name__)

_METADATA_FIELDS = frozenset(f.name for f in dataclasses.fields(RequestMetadata))

def build_metadata(feature: str, /, **overrides: Any) -> RequestMetadata:
    """Build RequestMetadata from loose keyword arguments.

    Known field names are applied (``None`` means keep the default); anything
    else lands in ``extras``.
    """
    known: dict[str, Any] = {}
    extras: dict[str, Any] = {}
    for key, value in overrides.items():
        if key in _METADATA_FIELDS:
            if value is not None:
                known[key] = value
        else:
            extras[key] = value

    known.setdefault("feature", feature)
    if "files" in known:
        known["files"] = tuple(known["files"])
    if "conversation_history" in known:
        known["conversation_history"] = tuple(known["conversation_history"])
    known["extras"] = {**known.get("extras", {}), **extras}
    return RequestMetadata(**known)

# ── Facade ───────────────────────────────────────────────────────────────────

class CentralBrain:
    """
    Request-orchestration facade.

    Usage:
        brain = CentralBrain(knowledge_source=my_lookup)
        response = await brain.process_chat("What does the listing rule say?")
    """

    def __init__(
        self,
        analyzer: RequestAnalyzer | None = None,
        context: ContextOrchestrator | None = None,
        router: ProviderRouter | None = None,
        coordinator: ResponseCoordinator | None = None,
        preference_store: PreferenceStore | None = None,
        *,
        knowledge_source: KnowledgeSource | None = None,
        registry: ProviderRegistry | None = None,
        credentials: CredentialChecker | None = None,
        request_timeout_s: float | None = None,
    ):
        self.analyzer = analyzer or RequestAnalyzer()
        self.context = context or ContextOrchestrator(knowledge_source=knowledge_source)
        self.router = router or ProviderRouter(
            registry=registry if registry is not None else default_registry(),
            credentials=credentials,
        )
        self.coordinator = coordinator or ResponseCoordinator()
        self.preferences = preference_store or PreferenceStore()
        self._request_timeout_s = (
            request_timeout_s if request_timeout_s is not None else settings.REQUEST_TIMEOUT_S
        )

        # Stats
        self._total_requests = 0
        self._total_errors = 0
        self._total_fallbacks = 0
        self._total_cache_hits = 0

    # ── Main Entry Point ─────────────────────────────────────────────

    async def process_request(
        self,
        request: UniversalRequest,
        *,
        timeout_s: float | None = None,
    ) -> UniversalResponse:
        """
        Run a request through the full pipeline.

        Flow:
          1. Auto-load preferences when the request carries none
          2. Analyze
          3. Gather context for the analyzer's categories
          4. Route with the combined context
          5. Package the response
        """
        request_id = uuid.uuid4().hex[:12]
        t0 = time.perf_counter()
        self._total_requests += 1
        set_request_context(
            request_id=request_id,
            feature=request.metadata.feature,
            user_id=request.metadata.user_id,
        )
        provider = settings.DEFAULT_PROVIDER

        try:
            request = self._with_preferences(request)
            provider = request.metadata.preferences.default.provider
            deadline = RequestDeadline(
                total_s=timeout_s if timeout_s is not None else self._request_timeout_s,
            )

            analysis = self.analyzer.analyze(request)
            provider = analysis.provider

            context = await self.context.gather_context(
                request, analysis.required_context, deadline,
            )
            result = await self.router.route(
                request,
                analysis.provider,
                combine_context(context),
                model=analysis.model,
                deadline=deadline,
            )
            if result.fallback_used:
                self._total_fallbacks += 1
            if result.from_cache:
                self._total_cache_hits += 1

            elapsed_ms = (time.perf_counter() - t0) * 1000
            response = self.coordinator.format(
                result.text,
                request,
                context,
                result.provider,
                elapsed_ms,
                model=result.model,
                from_cache=result.from_cache,
                fallback_used=result.fallback_used,
            )
            logger.info(
                "request_complete",
                kind=str(request.kind),
                provider=result.provider,
                quality=response.metadata.quality.value,
                context_used=response.metadata.context_used,
                processing_time_ms=round(elapsed_ms, 1),
            )
            return response

        except Exception as e:
            self._total_errors += 1
            elapsed_ms = (time.perf_counter() - t0) * 1000
            logger.error("request_failed", exc=e, kind=str(request.kind), provider=provider)
            return self.coordinator.format_error(e, request, provider, elapsed_ms=elapsed_ms)

        finally:
            clear_request_context()

    # ── Convenience operations ───────────────────────────────────────

    async def process_chat(
        self, content: str, *, timeout_s: float | None = None, **metadata: Any,
    ) -> UniversalResponse:
        return await self._process(RequestKind.CHAT, "chat", content, timeout_s, metadata)

    async def process_file_analysis(
        self,
        content: str,
        files: Iterable[AttachedFile],
        *,
        timeout_s: float | None = None,
        **metadata: Any,
    ) -> UniversalResponse:
        metadata["files"] = tuple(files)
        return await self._process(
            RequestKind.FILE_PROCESSING, "file_processing", content, timeout_s, metadata,
        )

    async def process_translation(
        self, content: str, *, timeout_s: float | None = None, **metadata: Any,
    ) -> UniversalResponse:
        return await self._process(
            RequestKind.TRANSLATION, "translation", content, timeout_s, metadata,
        )

    async def process_document_generation(
        self, content: str, *, timeout_s: float | None = None, **metadata: Any,
    ) -> UniversalResponse:
        metadata.setdefault("output_format", OutputFormat.MARKDOWN)
        return await self._process(
            RequestKind.DOCUMENT_GENERATION, "document_generation", content, timeout_s, metadata,
        )

    async def process_database_query(
        self, content: str, *, timeout_s: float | None = None, **metadata: Any,
    ) -> UniversalResponse:
        return await self._process(
            RequestKind.DATABASE_QUERY, "database", content, timeout_s, metadata,
        )

    # ── Lifecycle / Observability ────────────────────────────────────

    def reset(self) -> None:
        """Drain both caches."""
        self.router.reset()
        self.context.reset()
        logger.info("caches_reset")

    def get_stats(self) -> dict[str, Any]:
        return {
            "total_requests": self._total_requests,
            "total_errors": self._total_errors,
            "total_fallbacks": self._total_fallbacks,
            "total_cache_hits": self._total_cache_hits,
            "error_rate": round(self._total_errors / max(1, self._total_requests), 4),
            "analyzer": self.analyzer.get_stats(),
            "context": self.context.get_stats(),
            "router": self.router.get_stats(),
            "coordinator": self.coordinator.get_stats(),
            "preferences": self.preferences.get_stats(),
        }

    # ── Internals ────────────────────────────────────────────────────

    async def _process(
        self,
        kind: RequestKind,
        feature: str,
        content: str,
        timeout_s: float | None,
        metadata: dict[str, Any],
    ) -> UniversalResponse:
        request = UniversalRequest(
            kind=kind,
            content=content,
            metadata=build_metadata(feature, **metadata),
        )
        return await self.process_request(request, timeout_s=timeout_s)

    def _with_preferences(self, request: UniversalRequest) -> UniversalRequest:
        if request.metadata.preferences is not None:
            return request
        choice = self.preferences.get_feature_preference(request.metadata.feature)
        logger.debug("preferences_autoloaded", provider=choice.provider, model=choice.model)
        metadata = dataclasses.replace(request.metadata, preferences=Preferences(default=choice))
        return dataclasses.replace(request, metadata=metadata)

# ── Singleton ────────────────────────────────────────────────────────────────

_instance: CentralBrain | None = None

def get_brain() -> CentralBrain:
    """Get or create the global orchestration facade."""
    global _instance
    if _instance is None:
        _instance = CentralBrain()
    return _instance

def initialize_brain(**kwargs: Any) -> CentralBrain:
    """Configure logging and (re)create the global facade with ``kwargs``."""
    global _instance
    setup_logging(
        level=settings.LOG_LEVEL,
        json_output=settings.LOG_JSON,
        log_dir=settings.LOG_DIR,
    )
    _instance = CentralBrain(**kwargs)
    logger.info("central_brain_initialized", providers=_instance.router.registry.tags())
    return _instance

def reset_brain() -> None:
    """Drop the global facade; the next ``get_brain()`` builds a fresh one."""
    global _instance
    if _instance is not None:
        _instance.reset()
    _instance = None
