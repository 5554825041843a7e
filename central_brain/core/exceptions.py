"""Custom exception classes for the orchestration layer.

Includes:
- Base exception carrying a stable error code
- Context and provider exceptions used by the router and orchestrator
- Deadline and configuration errors
"""

from datetime import UTC, datetime
from typing import Any


class BrainError(Exception):
    """Base exception for all orchestration errors."""

    def __init__(self, detail: str, error_code: str = "INTERNAL_ERROR"):
        self.detail = detail
        self.error_code = error_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a plain dictionary for logs and responses."""
        return {
            "error": self.error_code,
            "detail": self.detail,
            "timestamp": self.timestamp,
        }


class ConfigurationError(BrainError):
    """Raised when the layer is wired incorrectly (e.g. no providers registered)."""

    def __init__(self, detail: str):
        super().__init__(detail=detail, error_code="CONFIGURATION_ERROR")


class OrchestrationError(BrainError):
    """Raised by adapters when a request came back unsuccessful."""

    def __init__(self, detail: str, error_code: str = "ORCHESTRATION_ERROR"):
        super().__init__(detail=detail, error_code=error_code)


class DeadlineExceededError(BrainError):
    """Raised when the per-request deadline ran out before a provider answered."""

    def __init__(self, detail: str = "Request deadline exceeded", stage: str = "unknown"):
        super().__init__(detail=detail, error_code="DEADLINE_EXCEEDED")
        self.stage = stage


class ContextFetchError(BrainError):
    """A single context category could not be fetched.

    Never escapes the context orchestrator; it is logged and the category
    is omitted.
    """

    def __init__(
        self,
        detail: str,
        category: str,
        original_error: Exception | None = None,
    ):
        super().__init__(detail=detail, error_code="CONTEXT_FETCH_FAILED")
        self.category = category
        self.original_error = original_error


# =============================================================================
# PROVIDER EXCEPTIONS
# =============================================================================


class ProviderError(BrainError):
    """Base exception for provider failures with fallback metadata."""

    def __init__(
        self,
        detail: str,
        provider: str = "unknown",
        error_code: str = "PROVIDER_ERROR",
        original_error: Exception | None = None,
        allows_fallback: bool = True,
    ):
        super().__init__(detail=detail, error_code=error_code)
        self.provider = provider
        self.original_error = original_error
        self.allows_fallback = allows_fallback

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update({"provider": self.provider, "allows_fallback": self.allows_fallback})
        return base


class ProviderCallError(ProviderError):
    """Transient call failure (HTTP error, bad payload, timeout). Triggers fallback."""

    def __init__(
        self,
        detail: str,
        provider: str,
        original_error: Exception | None = None,
        status_code: int | None = None,
    ):
        super().__init__(
            detail=detail,
            provider=provider,
            error_code="PROVIDER_CALL_FAILED",
            original_error=original_error,
        )
        self.status_code = status_code


class ProviderUnavailableError(ProviderError):
    """Provider has no valid credentials or is not registered.

    Routing may still move on to another provider, but a provider in this
    state is never chosen as a fallback.
    """

    def __init__(self, provider: str, detail: str | None = None):
        super().__init__(
            detail=detail or f"No valid credentials configured for provider '{provider}'",
            provider=provider,
            error_code="PROVIDER_UNAVAILABLE",
        )


class AllProvidersExhaustedError(ProviderError):
    """Terminal routing failure: the primary failed and no fallback succeeded."""

    def __init__(
        self,
        detail: str = "Both providers unavailable",
        attempted: tuple[str, ...] = (),
        original_error: Exception | None = None,
    ):
        super().__init__(
            detail=detail,
            provider=",".join(attempted) or "unknown",
            error_code="ALL_PROVIDERS_EXHAUSTED",
            original_error=original_error,
            allows_fallback=False,
        )
        self.attempted = attempted


def error_from_code(error_code: str | None, detail: str) -> BrainError:
    """Rebuild a raisable exception from a response's error code.

    Used by adapters that only see the packaged response.
    """
    if error_code == "ALL_PROVIDERS_EXHAUSTED":
        return AllProvidersExhaustedError(detail=detail)
    if error_code == "DEADLINE_EXCEEDED":
        return DeadlineExceededError(detail=detail)
    return OrchestrationError(detail=detail, error_code=error_code or "ORCHESTRATION_ERROR")
