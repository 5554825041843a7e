"""
Orchestration pipeline stages.

The facade lives in ``central_brain.orchestration.orchestrator`` and is
re-exported from the top-level package.
"""

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
    ProcessingContext,
    ProviderChoice,
    RequestAnalysis,
    RequestMetadata,
    ResponseMetadata,
    UniversalRequest,
    UniversalResponse,
)
from central_brain.orchestration.router import ProviderRouter, RouteResult

__all__ = [
    "AttachedFile",
    "ContextOrchestrator",
    "KnowledgeSource",
    "Preferences",
    "ProcessingContext",
    "ProviderChoice",
    "ProviderRouter",
    "RequestAnalysis",
    "RequestAnalyzer",
    "RequestDeadline",
    "RequestMetadata",
    "ResponseCoordinator",
    "ResponseMetadata",
    "RouteResult",
    "UniversalRequest",
    "UniversalResponse",
    "combine_context",
]
