"""File analysis adapter.

Builds extraction/analysis prompts and runs them as file-processing
requests using the chat provider preference.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

from central_brain.adapters.base import BaseAdapter
from central_brain.orchestration.models import AttachedFile, Preferences

class ExtractionType(StrEnum):
    TEXT = "text"
    ANALYSIS = "analysis"
    SUMMARY = "summary"

class AnalysisType(StrEnum):
    SUMMARY = "summary"
    KEY_POINTS = "key_points"
    COMPLIANCE = "compliance"
    RISKS = "risks"

_ANALYSIS_PROMPTS: dict[AnalysisType, str] = {
    AnalysisType.SUMMARY: (
        "Provide a comprehensive summary of this document, highlighting the main "
        "points and key information."
    ),
    AnalysisType.KEY_POINTS: (
        "Extract and list the key points, important facts, and main conclusions "
        "from this document."
    ),
    AnalysisType.COMPLIANCE: (
        "Analyze this document for compliance issues, regulatory requirements, "
        "and potential risks."
    ),
    AnalysisType.RISKS: (
        "Identify and analyze potential risks, concerns, and issues mentioned or "
        "implied in this document."
    ),
}

def extraction_prompt(query: str, extraction_type: ExtractionType | str | None = None) -> str:
    base = f"Analyze the provided files and respond to: {query}"
    if extraction_type == ExtractionType.TEXT:
        return f"Extract and return the text content from the files. {base}"
    if extraction_type == ExtractionType.SUMMARY:
        return f"Provide a comprehensive summary of the files. {base}"
    return f"Perform a detailed analysis of the files. {base}"

def analysis_prompt(analysis_type: AnalysisType | str) -> str:
    try:
        return _ANALYSIS_PROMPTS[AnalysisType(analysis_type)]
    except ValueError:
        return _ANALYSIS_PROMPTS[AnalysisType.SUMMARY]

class FileAdapter(BaseAdapter):
    """Entry points used by upload and document-review features."""

    def _chat_preferences(self) -> Preferences:
        return Preferences(default=self.brain.preferences.get_feature_preference("chat"))

    async def process_files(
        self,
        files: Iterable[AttachedFile],
        query: str,
        *,
        extraction_type: ExtractionType | str | None = None,
        feature: str | None = None,
        user_id: str | None = None,
    ) -> str:
        response = await self.brain.process_file_analysis(
            extraction_prompt(query, extraction_type),
            files,
            preferences=self._chat_preferences(),
            feature=feature or "file_processing",
            user_id=user_id,
            extraction_type=str(extraction_type or ExtractionType.ANALYSIS),
        )
        return self.unwrap(response, "Failed to process files")

    async def analyze_document(
        self,
        file: AttachedFile,
        analysis_type: AnalysisType | str = AnalysisType.SUMMARY,
        *,
        feature: str | None = None,
        user_id: str | None = None,
    ) -> str:
        response = await self.brain.process_file_analysis(
            analysis_prompt(analysis_type),
            [file],
            preferences=self._chat_preferences(),
            feature=feature or "document_analysis",
            user_id=user_id,
            analysis_type=str(analysis_type),
        )
        return self.unwrap(response, "Failed to analyze document")

    async def extract_content(
        self,
        files: Iterable[AttachedFile],
        content_type: str = "text",
        *,
        feature: str | None = None,
        user_id: str | None = None,
    ) -> str:
        response = await self.brain.process_file_analysis(
            f"Extract {content_type} content from the provided files.",
            files,
            preferences=self._chat_preferences(),
            feature=feature or "content_extraction",
            user_id=user_id,
            content_type=content_type,
        )
        return self.unwrap(response, "Failed to extract content")
