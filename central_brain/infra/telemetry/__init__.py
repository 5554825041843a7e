"""
Telemetry Layer
===============

Structured logging with request-context propagation.

Usage:
    from central_brain.infra.telemetry import get_logger

    logger = get_logger(__name__)
    logger.info("context_gathered", categories=["regulatory"])
"""

from central_brain.infra.telemetry.logger import (
    StructuredFormatter,
    StructuredLogger,
    clear_request_context,
    get_logger,
    set_request_context,
    setup_logging,
)

__all__ = [
    "StructuredFormatter",
    "StructuredLogger",
    "clear_request_context",
    "get_logger",
    "set_request_context",
    "setup_logging",
]
