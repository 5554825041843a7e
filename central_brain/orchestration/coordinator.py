"""
Response Coordinator
====================

Validates, cleans, scores and packages raw provider output into a
UniversalResponse, or synthesizes a safe fallback on failure.

Design:
- Content is never empty: blank output becomes a per-kind fallback sentence
- Quality is a small additive heuristic with configurable thresholds, not
  a semantic evaluation
- Feature tags record which optional capabilities a request exercised
- Failures keep the original error message and code apart from the
  user-visible content
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Any

from central_brain.core.config import settings
from central_brain.core.exceptions import BrainError
from central_brain.core.types import OutputFormat, QualityTier, RequestKind
from central_brain.orchestration.models import (
    ProcessingContext,
    ResponseMetadata,
    UniversalRequest,
    UniversalResponse,
)

logger = logging.getLogger(__name__)

_FALLBACK_MESSAGES: dict[RequestKind, str] = {
    RequestKind.CHAT: "I'm here to help with your query. Could you please rephrase your question?",
    RequestKind.FILE_PROCESSING: (
        "I encountered an issue processing your file. Please try again or check the file format."
    ),
    RequestKind.TRANSLATION: "I'm unable to complete the translation at the moment. Please try again.",
    RequestKind.DOCUMENT_GENERATION: (
        "I couldn't generate the document as requested. Please review your requirements and try again."
    ),
    RequestKind.DATABASE_QUERY: (
        "I'm unable to retrieve the requested information right now. Please try again later."
    ),
}
_DEFAULT_FALLBACK = "I'm experiencing some difficulties. Please try your request again."

_CODE_FENCE = re.compile(r"^```[\w-]*\s*\n(.*?)\n?```$", re.DOTALL)
_TERMINAL_PUNCTUATION = (".", "!", "?")

def fallback_message(kind: RequestKind | str) -> str:
    try:
        return _FALLBACK_MESSAGES[RequestKind(kind)]
    except ValueError:
        return _DEFAULT_FALLBACK

class ResponseCoordinator:
    """
    Packages provider output.

    Public API:
        - format()        → success path
        - format_error()  → failure path
        - get_stats()     → quality distribution
    """

    def __init__(
        self,
        high_score: int | None = None,
        medium_score: int | None = None,
        short_length: int | None = None,
        long_length: int | None = None,
        relevance_ratio: float | None = None,
    ):
        self._high = settings.QUALITY_HIGH_SCORE if high_score is None else high_score
        self._medium = settings.QUALITY_MEDIUM_SCORE if medium_score is None else medium_score
        self._short = settings.QUALITY_SHORT_LENGTH if short_length is None else short_length
        self._long = settings.QUALITY_LONG_LENGTH if long_length is None else long_length
        self._relevance = (
            settings.QUALITY_RELEVANCE_RATIO if relevance_ratio is None else relevance_ratio
        )
        self._quality: Counter[str] = Counter()
        self._substituted = 0
        self._errors: Counter[str] = Counter()

    # ── Success path ─────────────────────────────────────────────────

    def format(
        self,
        raw: str,
        request: UniversalRequest,
        context: ProcessingContext,
        provider: str,
        elapsed_ms: float,
        *,
        model: str = "",
        from_cache: bool = False,
        fallback_used: bool = False,
    ) -> UniversalResponse:
        content = self.clean(raw, request)
        quality = self.assess_quality(content, request, context)
        self._quality[quality.value] += 1

        return UniversalResponse(
            success=True,
            content=content,
            metadata=ResponseMetadata(
                provider=provider,
                model=model,
                processing_time_ms=elapsed_ms,
                context_used=not context.is_empty,
                quality=quality,
                features=self.identify_features(context, request),
                from_cache=from_cache,
                fallback_used=fallback_used,
            ),
        )

    def clean(self, raw: str | None, request: UniversalRequest) -> str:
        if not raw or not raw.strip():
            self._substituted += 1
            logger.info("Empty provider output for %s, substituting fallback", request.kind)
            return fallback_message(request.kind)

        cleaned = raw.strip()
        if request.metadata.output_format == OutputFormat.JSON:
            match = _CODE_FENCE.match(cleaned)
            if match and match.group(1).strip():
                cleaned = match.group(1).strip()
        return cleaned

    def assess_quality(
        self,
        response: str,
        request: UniversalRequest,
        context: ProcessingContext,
    ) -> QualityTier:
        score = 0
        lower = response.lower()

        if len(response) > self._short:
            score += 1
        if len(response) > self._long:
            score += 1

        if context.regulatory and "regulation" in lower:
            score += 1
        if context.document and "document" in lower:
            score += 1

        if any(p in response for p in _TERMINAL_PUNCTUATION):
            score += 1

        query_words = [w for w in (request.content or "").lower().split(" ") if len(w) > 3]
        response_words = set(lower.split(" "))
        matching = [w for w in query_words if w in response_words]
        if len(matching) > len(query_words) * self._relevance:
            score += 1

        if score >= self._high:
            return QualityTier.HIGH
        if score >= self._medium:
            return QualityTier.MEDIUM
        return QualityTier.LOW

    @staticmethod
    def identify_features(context: ProcessingContext, request: UniversalRequest) -> tuple[str, ...]:
        features: list[str] = []
        if context.regulatory:
            features.append("regulatory_context")
        if context.document:
            features.append("document_analysis")
        if context.historical:
            features.append("historical_context")
        if request.metadata.has_files:
            features.append("file_processing")
        if request.kind == RequestKind.TRANSLATION:
            features.append("translation")
        return tuple(features)

    # ── Failure path ─────────────────────────────────────────────────

    def format_error(
        self,
        error: BaseException,
        request: UniversalRequest,
        provider: str,
        *,
        elapsed_ms: float = 0.0,
    ) -> UniversalResponse:
        error_code = error.error_code if isinstance(error, BrainError) else "INTERNAL_ERROR"
        self._errors[error_code] += 1
        self._quality[QualityTier.LOW.value] += 1

        return UniversalResponse(
            success=False,
            content=fallback_message(request.kind),
            metadata=ResponseMetadata(
                provider=provider,
                model="fallback",
                processing_time_ms=elapsed_ms,
                context_used=False,
                quality=QualityTier.LOW,
                features=("error_handling",),
                error_code=error_code,
            ),
            error=str(error) or type(error).__name__,
        )

    def get_stats(self) -> dict[str, Any]:
        return {
            "quality": dict(self._quality),
            "substituted_empty": self._substituted,
            "errors": dict(self._errors),
        }
