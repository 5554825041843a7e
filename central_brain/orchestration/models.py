"""
Request / Response Model
========================

Shared data contracts for the orchestration pipeline. No behavior beyond
small convenience accessors.

Design:
- UniversalRequest / UniversalResponse are immutable and request-scoped
- ProcessingContext is the only mutable contract; the Context Orchestrator
  fills it as fetches settle
- Preferences always resolve to a ProviderChoice, never fail closed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from central_brain.core.types import (
    ComplexityTier,
    ContextCategory,
    OutputFormat,
    ProcessingStrategy,
    QualityTier,
    RequestKind,
)

# ── Preferences ──────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class ProviderChoice:
    """A provider tag plus the model to ask it for."""

    provider: str
    model: str

@dataclass(frozen=True, slots=True)
class Preferences:
    """Default provider choice plus optional per-feature overrides."""

    default: ProviderChoice
    per_feature: dict[str, ProviderChoice] = field(default_factory=dict)

    def for_feature(self, feature: str) -> ProviderChoice:
        return self.per_feature.get(feature, self.default)

# ── Request ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class AttachedFile:
    name: str
    content_type: str = "application/octet-stream"
    size: int = 0
    data: str = ""

@dataclass(frozen=True, slots=True)
class RequestMetadata:
    """Caller-supplied metadata carried with every request."""

    feature: str
    files: tuple[AttachedFile, ...] = ()
    target_language: str | None = None
    output_format: OutputFormat = OutputFormat.TEXT
    user_id: str | None = None
    preferences: Preferences | None = None
    conversation_history: tuple[dict[str, str], ...] = ()
    extras: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "output_format", OutputFormat(self.output_format))

    @property
    def has_files(self) -> bool:
        return len(self.files) > 0

@dataclass(frozen=True, slots=True)
class UniversalRequest:
    """Immutable pipeline input."""

    kind: RequestKind
    content: str
    metadata: RequestMetadata

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", RequestKind(self.kind))

    @property
    def feature(self) -> str:
        return self.metadata.feature

# ── Pipeline intermediates ───────────────────────────────────────────────────

@dataclass(slots=True)
class ProcessingContext:
    """Accumulator filled by the Context Orchestrator.

    A ``None`` field means not required or not found.
    """

    regulatory: str | None = None
    document: str | None = None
    historical: str | None = None

    def get(self, category: ContextCategory) -> str | None:
        return getattr(self, category.value)

    def set(self, category: ContextCategory, value: str) -> None:
        setattr(self, category.value, value)

    @property
    def is_empty(self) -> bool:
        return not (self.regulatory or self.document or self.historical)

    def copy(self) -> ProcessingContext:
        return ProcessingContext(
            regulatory=self.regulatory,
            document=self.document,
            historical=self.historical,
        )

@dataclass(frozen=True, slots=True)
class RequestAnalysis:
    """Derived classification of a request. Never persisted."""

    complexity: ComplexityTier
    provider: str
    model: str
    required_context: tuple[ContextCategory, ...]
    strategy: ProcessingStrategy
    cache_key: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "complexity": self.complexity.value,
            "provider": self.provider,
            "model": self.model,
            "required_context": [c.value for c in self.required_context],
            "strategy": self.strategy.value,
            "cache_key": self.cache_key,
        }

# ── Response ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class ResponseMetadata:
    provider: str
    model: str
    processing_time_ms: float
    context_used: bool
    quality: QualityTier
    features: tuple[str, ...] = ()
    error_code: str | None = None
    from_cache: bool = False
    fallback_used: bool = False

@dataclass(frozen=True, slots=True)
class UniversalResponse:
    """Pipeline output. ``content`` is never empty."""

    success: bool
    content: str
    metadata: ResponseMetadata
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "content": self.content,
            "metadata": {
                "provider": self.metadata.provider,
                "model": self.metadata.model,
                "processing_time_ms": round(self.metadata.processing_time_ms, 2),
                "context_used": self.metadata.context_used,
                "quality": self.metadata.quality.value,
                "features": list(self.metadata.features),
                "error_code": self.metadata.error_code,
                "from_cache": self.metadata.from_cache,
                "fallback_used": self.metadata.fallback_used,
            },
            "error": self.error,
        }
