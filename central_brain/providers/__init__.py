"""Provider backends and the registry the router dispatches through."""

from central_brain.core.config import Settings
from central_brain.providers.base import (
    CallMeta,
    CredentialChecker,
    ProviderBackend,
    ProviderRegistry,
    SettingsCredentialChecker,
)
from central_brain.providers.gemini import GeminiBackend
from central_brain.providers.grok import GrokBackend

def default_registry(config: Settings | None = None) -> ProviderRegistry:
    """Registry with the built-in backends, Grok first."""
    return ProviderRegistry([GrokBackend(config=config), GeminiBackend(config=config)])

__all__ = [
    "CallMeta",
    "CredentialChecker",
    "GeminiBackend",
    "GrokBackend",
    "ProviderBackend",
    "ProviderRegistry",
    "SettingsCredentialChecker",
    "default_registry",
]
