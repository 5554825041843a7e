"""
Request Analyzer
================

Classifies an incoming request: complexity tier, provider choice,
required context categories, processing strategy and a cache key.

Design:
- Pure heuristic, no I/O; garbage input degrades to low / direct / no context
- Provider lookup never fails closed: per-feature override, else default
- Context categories are detected in a fixed order
  (regulatory, document, historical)
- Counters only; the analyzer keeps no cache of its own
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from central_brain.core.config import settings
from central_brain.core.types import (
    ComplexityTier,
    ContextCategory,
    ProcessingStrategy,
)
from central_brain.infra.cache import content_hash
from central_brain.orchestration.models import (
    Preferences,
    ProviderChoice,
    RequestAnalysis,
    UniversalRequest,
)

logger = logging.getLogger(__name__)

# ── Heuristic vocabularies ───────────────────────────────────────────────────

_HIGH_COMPLEXITY_WORDS = ("analysis", "complex")
_MEDIUM_COMPLEXITY_WORDS = ("summarize", "summary", "translate")

_REGULATORY_TRIGGERS = ("regulation", "regulatory", "compliance", "law")
_HISTORICAL_TRIGGERS = ("previous", "history", "earlier")

def _score_complexity(content: str, has_files: bool, length_threshold: int) -> ComplexityTier:
    lower = content.lower()
    if has_files or len(content) > length_threshold:
        return ComplexityTier.HIGH
    if any(w in lower for w in _HIGH_COMPLEXITY_WORDS):
        return ComplexityTier.HIGH
    if any(w in lower for w in _MEDIUM_COMPLEXITY_WORDS):
        return ComplexityTier.MEDIUM
    return ComplexityTier.LOW

def _detect_context_needs(content: str, has_files: bool) -> tuple[ContextCategory, ...]:
    lower = content.lower()
    needs: list[ContextCategory] = []
    if any(w in lower for w in _REGULATORY_TRIGGERS):
        needs.append(ContextCategory.REGULATORY)
    if has_files:
        needs.append(ContextCategory.DOCUMENT)
    if any(w in lower for w in _HISTORICAL_TRIGGERS):
        needs.append(ContextCategory.HISTORICAL)
    return tuple(needs)

def _resolve_strategy(
    complexity: ComplexityTier,
    needs: tuple[ContextCategory, ...],
) -> ProcessingStrategy:
    if complexity == ComplexityTier.HIGH or len(needs) > 1:
        return ProcessingStrategy.PARALLEL
    if complexity == ComplexityTier.MEDIUM:
        return ProcessingStrategy.SEQUENTIAL
    return ProcessingStrategy.DIRECT

# ── Analyzer ─────────────────────────────────────────────────────────────────

class RequestAnalyzer:
    """Stateless request analyzer. Instance state is counters only."""

    def __init__(
        self,
        length_threshold: int | None = None,
        default_choice: ProviderChoice | None = None,
    ):
        self._length_threshold = length_threshold or settings.COMPLEXITY_LENGTH_THRESHOLD
        self._default_choice = default_choice or ProviderChoice(
            provider=settings.DEFAULT_PROVIDER,
            model=settings.DEFAULT_MODEL,
        )
        self._total = 0
        self._by_complexity: Counter[str] = Counter()
        self._by_strategy: Counter[str] = Counter()

    def analyze(self, request: UniversalRequest) -> RequestAnalysis:
        meta = request.metadata
        content = request.content or ""

        complexity = _score_complexity(content, meta.has_files, self._length_threshold)
        choice = self.select_provider(request)
        needs = _detect_context_needs(content, meta.has_files)
        strategy = _resolve_strategy(complexity, needs)

        analysis = RequestAnalysis(
            complexity=complexity,
            provider=choice.provider,
            model=choice.model,
            required_context=needs,
            strategy=strategy,
            cache_key=self.cache_key(request, choice.provider),
        )

        self._total += 1
        self._by_complexity[complexity.value] += 1
        self._by_strategy[strategy.value] += 1
        logger.debug(
            "Analyzed %s/%s: complexity=%s strategy=%s context=%s provider=%s",
            request.kind, meta.feature, complexity, strategy,
            [c.value for c in needs], choice.provider,
        )
        return analysis

    def select_provider(self, request: UniversalRequest) -> ProviderChoice:
        """Per-feature override if present, else the default pair."""
        prefs: Preferences | None = request.metadata.preferences
        if prefs is None:
            return self._default_choice
        return prefs.for_feature(request.metadata.feature)

    @staticmethod
    def cache_key(request: UniversalRequest, provider: str) -> str:
        return ":".join((
            str(request.kind),
            request.metadata.feature,
            content_hash(request.content or ""),
            provider,
        ))

    def get_stats(self) -> dict[str, Any]:
        return {
            "total": self._total,
            "by_complexity": dict(self._by_complexity),
            "by_strategy": dict(self._by_strategy),
        }

    def reset_stats(self) -> None:
        self._total = 0
        self._by_complexity.clear()
        self._by_strategy.clear()
