"""
Canonical Type Definitions
===========================

Single source of truth for shared enums used across the orchestration layer.
All modules should import shared enums from here.

This module defines:
- RequestKind: what a feature is asking the layer to do
- OutputFormat: output-format hint carried in request metadata
- ComplexityTier / ProcessingStrategy: analyzer outputs
- ContextCategory: supporting-context classes gathered before routing
- QualityTier: coarse response quality classification
- ProviderTag: the provider backends shipped with the package
"""

from enum import StrEnum

__all__ = [
    "ComplexityTier",
    "ContextCategory",
    "OutputFormat",
    "ProcessingStrategy",
    "ProviderTag",
    "QualityTier",
    "RequestKind",
]

class RequestKind(StrEnum):
    """Kinds of request a feature can submit."""

    CHAT = "chat"
    FILE_PROCESSING = "file_processing"
    TRANSLATION = "translation"
    DOCUMENT_GENERATION = "document_generation"
    DATABASE_QUERY = "database_query"

class OutputFormat(StrEnum):
    TEXT = "text"
    MARKDOWN = "markdown"
    JSON = "json"
    HTML = "html"

class ComplexityTier(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class ProcessingStrategy(StrEnum):
    DIRECT = "direct"          # No context, single call
    SEQUENTIAL = "sequential"  # Medium complexity, one context source at most
    PARALLEL = "parallel"      # Several context sources or heavy request

class ContextCategory(StrEnum):
    """Supporting-context classes, in prompt concatenation order."""

    REGULATORY = "regulatory"
    DOCUMENT = "document"
    HISTORICAL = "historical"

class QualityTier(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

class ProviderTag(StrEnum):
    """Provider backends shipped with the package.

    The router accepts any registered string tag; these are the built-ins.
    """

    GROK = "grok"
    GOOGLE = "google"
