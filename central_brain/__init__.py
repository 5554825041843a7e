"""
Central Brain
=============

Request-orchestration layer between application features and
interchangeable generative-AI providers.

Usage:
    from central_brain import CentralBrain

    brain = CentralBrain()
    response = await brain.process_chat("Summarize the listing rules")
"""

from central_brain.orchestration.orchestrator import (
    CentralBrain,
    get_brain,
    initialize_brain,
    reset_brain,
)

__version__ = "1.0.0"

__all__ = ["CentralBrain", "get_brain", "initialize_brain", "reset_brain"]
