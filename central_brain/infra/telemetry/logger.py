"""
Structured Logger
=================

Structured logging with automatic request-context injection for the
orchestration pipeline.

Design:
  - JSON-structured output for machine parsing
  - Human-readable fallback for development
  - Automatic context injection (request_id, feature, user_id)
  - Event-style calls: ``log.info("route_complete", provider="grok")``
  - Async-compatible: context lives in ContextVars, so concurrent requests
    on one event loop never see each other's ids
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import traceback
from contextvars import ContextVar
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# ── Context Variables ──────────────────────────────────────────────

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_feature: ContextVar[str | None] = ContextVar("feature", default=None)
_user_id: ContextVar[str | None] = ContextVar("user_id", default=None)

def set_request_context(
    *,
    request_id: str | None = None,
    feature: str | None = None,
    user_id: str | None = None,
) -> None:
    """Set request-scoped context for log enrichment."""
    if request_id is not None:
        _request_id.set(request_id)
    if feature is not None:
        _feature.set(feature)
    if user_id is not None:
        _user_id.set(user_id)

def clear_request_context() -> None:
    """Clear all request-scoped context."""
    _request_id.set(None)
    _feature.set(None)
    _user_id.set(None)

# ── Structured Formatter ──────────────────────────────────────────

_RESERVED = frozenset({
    "name", "msg", "args", "created", "relativeCreated",
    "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "pathname", "filename", "module", "levelno", "levelname",
    "thread", "threadName", "process", "processName", "msecs",
    "taskName", "message",
})

_JSON_SAFE = (str, int, float, bool, type(None))

class StructuredFormatter(logging.Formatter):
    """JSON-structured log formatter with automatic context injection."""

    def __init__(self, *, json_output: bool = True, include_traceback: bool = True):
        super().__init__()
        self._json = json_output
        self._include_tb = include_traceback
        self._pid = os.getpid()

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
            "pid": self._pid,
        }

        ctx_fields = {
            "request_id": _request_id.get(None),
            "feature": _feature.get(None),
            "user_id": _user_id.get(None),
        }
        entry["context"] = {k: v for k, v in ctx_fields.items() if v is not None}

        extras: dict[str, Any] = {}
        for key, val in record.__dict__.items():
            if key.startswith("_") or key in _RESERVED:
                continue
            if isinstance(val, _JSON_SAFE):
                extras[key] = val
            elif isinstance(val, (list, tuple, dict)):
                try:
                    json.dumps(val)
                    extras[key] = val
                except (TypeError, ValueError):
                    extras[key] = str(val)
            else:
                extras[key] = str(val)

        if extras:
            entry["data"] = extras

        if record.exc_info and self._include_tb:
            entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
                if record.exc_info[2]
                else None,
            }

        if self._json:
            return json.dumps(entry, default=str, ensure_ascii=False)

        # Human-readable fallback
        req_id = (entry["context"].get("request_id") or "-")[:8]
        data = entry.get("data")
        suffix = " " + " ".join(f"{k}={v}" for k, v in data.items()) if data else ""
        return (
            f"{entry['timestamp']} | {entry['level']:8s} | "
            f"{req_id} | {entry['logger']}:{entry['line']} | "
            f"{entry['message']}{suffix}"
        )

# ── Structured Logger ─────────────────────────────────────────────

class StructuredLogger:
    """
    Wrapper around stdlib logger providing structured logging helpers.

    Usage:
        log = StructuredLogger("central_brain.orchestration.router")
        log.info("route_complete", provider="grok", cached=False)
        log.warning("fallback_engaged", primary="grok", alternate="google")
    """

    __slots__ = ("_logger", "_name")

    def __init__(self, name: str):
        self._name = name
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._name

    def _log(self, level: int, event: str, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, event, extra=kwargs, stacklevel=3)

    def debug(self, event: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._log(logging.INFO, event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, event, **kwargs)

    def error(self, event: str, exc: BaseException | None = None, **kwargs: Any) -> None:
        if exc:
            self._logger.error(event, extra=kwargs, exc_info=exc, stacklevel=2)
        else:
            self._log(logging.ERROR, event, **kwargs)

    def exception(self, event: str, **kwargs: Any) -> None:
        self._logger.exception(event, extra=kwargs, stacklevel=2)

    def bind(self, **context: Any) -> BoundLogger:
        """Create a child logger with bound context fields."""
        return BoundLogger(self, context)

class BoundLogger:
    """Logger with pre-bound context fields."""

    __slots__ = ("_context", "_parent")

    def __init__(self, parent: StructuredLogger, context: dict[str, Any]):
        self._parent = parent
        self._context = context

    def _merged(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        return {**self._context, **kwargs}

    def debug(self, event: str, **kwargs: Any) -> None:
        self._parent.debug(event, **self._merged(kwargs))

    def info(self, event: str, **kwargs: Any) -> None:
        self._parent.info(event, **self._merged(kwargs))

    def warning(self, event: str, **kwargs: Any) -> None:
        self._parent.warning(event, **self._merged(kwargs))

    def error(self, event: str, exc: BaseException | None = None, **kwargs: Any) -> None:
        self._parent.error(event, exc=exc, **self._merged(kwargs))

# ── Setup ──────────────────────────────────────────────────────────

_initialized = False

def setup_logging(
    *,
    level: str = "INFO",
    json_output: bool | None = None,
    log_dir: str | None = None,
    force: bool = False,
) -> None:
    """
    Initialize the logging system. Call once at application startup.

    Args:
        level: Root log level
        json_output: Force JSON output. Auto-detects if None (JSON outside development)
        log_dir: Directory for a rotating log file. None = stdout only.
        force: Re-run setup even if already initialized
    """
    global _initialized
    if _initialized and not force:
        return
    _initialized = True

    if json_output is None:
        json_output = os.getenv("ENVIRONMENT", "development") != "development"

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(StructuredFormatter(json_output=json_output))
    root.addHandler(console)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path / "central_brain.log",
            maxBytes=20 * 1024 * 1024,  # 20MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(StructuredFormatter(json_output=True))
        root.addHandler(file_handler)

    for noisy in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)
