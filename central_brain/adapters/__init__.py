"""Feature adapters over the orchestration facade."""

from central_brain.adapters.chat import ChatAdapter
from central_brain.adapters.files import AnalysisType, ExtractionType, FileAdapter

__all__ = ["AnalysisType", "ChatAdapter", "ExtractionType", "FileAdapter"]
