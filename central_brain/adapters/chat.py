"""Chat feature adapter: plain strings in, plain content (or an error) out."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from central_brain.adapters.base import BaseAdapter
from central_brain.orchestration.models import AttachedFile

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 5

class ChatAdapter(BaseAdapter):
    """Entry points used by the chat UI."""

    async def process_message(
        self,
        content: str,
        messages: Sequence[dict[str, Any]] = (),
        *,
        files: Iterable[AttachedFile] | None = None,
        feature: str | None = None,
        user_id: str | None = None,
    ) -> str:
        """Send one chat turn with the last few messages as history."""
        logger.info(
            "ChatAdapter: processing message (len=%d, files=%s, feature=%s)",
            len(content), files is not None, feature,
        )
        response = await self.brain.process_chat(
            content,
            files=tuple(files) if files is not None else None,
            feature=feature or "chat",
            user_id=user_id,
            conversation_history=tuple(messages[-HISTORY_WINDOW:]),
        )
        return self.unwrap(response, "Failed to process chat message")

    async def process_file_with_message(
        self,
        content: str,
        files: Iterable[AttachedFile],
        *,
        feature: str | None = None,
        user_id: str | None = None,
    ) -> str:
        files = tuple(files)
        logger.info("ChatAdapter: processing %d file(s) with message", len(files))
        response = await self.brain.process_file_analysis(
            content,
            files,
            feature=feature or "file_processing",
            user_id=user_id,
        )
        return self.unwrap(response, "Failed to process files")

    async def process_translation(
        self,
        content: str,
        target_language: str,
        *,
        feature: str | None = None,
        user_id: str | None = None,
    ) -> str:
        response = await self.brain.process_translation(
            f"Translate to {target_language}: {content}",
            feature=feature or "translation",
            user_id=user_id,
            target_language=target_language,
        )
        return self.unwrap(response, "Failed to process translation")
