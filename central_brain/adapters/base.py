"""Shared plumbing for feature adapters."""

from __future__ import annotations

import logging

from central_brain.core.exceptions import error_from_code
from central_brain.orchestration.models import UniversalResponse
from central_brain.orchestration.orchestrator import CentralBrain, get_brain

logger = logging.getLogger(__name__)

class BaseAdapter:
    """Unwraps UniversalResponse into plain content or a raised error."""

    def __init__(self, brain: CentralBrain | None = None):
        self._brain = brain

    @property
    def brain(self) -> CentralBrain:
        return self._brain or get_brain()

    @staticmethod
    def unwrap(response: UniversalResponse, failure_message: str) -> str:
        if response.success:
            return response.content
        error = error_from_code(response.metadata.error_code, response.error or failure_message)
        logger.error("%s: %s (%s)", failure_message, error.detail, error.error_code)
        raise error
