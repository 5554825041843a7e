"""Core primitives: settings, exceptions and shared enums."""

from central_brain.core.config import Settings, get_settings, settings
from central_brain.core.exceptions import (
    AllProvidersExhaustedError,
    BrainError,
    ConfigurationError,
    ContextFetchError,
    DeadlineExceededError,
    OrchestrationError,
    ProviderCallError,
    ProviderError,
    ProviderUnavailableError,
)

__all__ = [
    "AllProvidersExhaustedError",
    "BrainError",
    "ConfigurationError",
    "ContextFetchError",
    "DeadlineExceededError",
    "OrchestrationError",
    "ProviderCallError",
    "ProviderError",
    "ProviderUnavailableError",
    "Settings",
    "get_settings",
    "settings",
]
