"""
Provider Backends
=================

Interchangeable generative-AI backends behind a single ``call`` capability,
plus the registry the router dispatches through.

Design:
- A backend is anything with ``name``, ``default_model`` and
  ``async call(prompt, meta) -> str``
- The registry is an ordered tag → backend map; adding a provider is a
  ``register()`` call, never a router change
- Credential checks are a separate collaborator so tests and callers can
  swap them without touching backends
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from central_brain.core.config import Settings, settings
from central_brain.core.exceptions import ConfigurationError
from central_brain.core.types import ProviderTag, RequestKind

# ── Data Contracts ───────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class CallMeta:
    """Per-call metadata handed to a backend."""

    feature: str
    kind: RequestKind
    model: str

# ── Protocols ────────────────────────────────────────────────────────────────

@runtime_checkable
class ProviderBackend(Protocol):
    """Single capability every provider exposes."""

    name: str
    default_model: str

    async def call(self, prompt: str, meta: CallMeta) -> str:
        ...

class CredentialChecker(Protocol):
    def has_valid_credential(self, provider: str) -> bool:
        ...

# ── Registry ─────────────────────────────────────────────────────────────────

class ProviderRegistry:
    """Ordered provider tag → backend map."""

    def __init__(self, backends: list[ProviderBackend] | None = None):
        self._backends: dict[str, ProviderBackend] = {}
        for backend in backends or []:
            self.register(backend)

    def register(self, backend: ProviderBackend, tag: str | None = None) -> None:
        self._backends[tag or backend.name] = backend

    def unregister(self, tag: str) -> None:
        self._backends.pop(tag, None)

    def get(self, tag: str) -> ProviderBackend | None:
        return self._backends.get(tag)

    def require(self, tag: str) -> ProviderBackend:
        backend = self._backends.get(tag)
        if backend is None:
            raise ConfigurationError(f"Provider '{tag}' is not registered")
        return backend

    def tags(self) -> list[str]:
        return list(self._backends)

    def alternates(self, tag: str) -> list[str]:
        """Every other registered tag, in registration order."""
        return [t for t in self._backends if t != tag]

    def __contains__(self, tag: str) -> bool:
        return tag in self._backends

    def __iter__(self) -> Iterator[str]:
        return iter(self._backends)

    def __len__(self) -> int:
        return len(self._backends)

# ── Credentials ──────────────────────────────────────────────────────────────

def is_valid_google_key(key: str | None) -> bool:
    return bool(key) and key.startswith("AIza") and len(key) >= 20

def is_valid_grok_key(key: str | None) -> bool:
    return bool(key and key.strip())

class SettingsCredentialChecker:
    """Validates provider keys held in Settings."""

    def __init__(self, config: Settings | None = None):
        self._settings = config or settings

    def has_valid_credential(self, provider: str) -> bool:
        if provider == ProviderTag.GROK:
            return is_valid_grok_key(self._settings.GROK_API_KEY)
        if provider == ProviderTag.GOOGLE:
            return is_valid_google_key(self._settings.GOOGLE_API_KEY)
        return False

    def get_stats(self) -> dict[str, Any]:
        return {tag.value: self.has_valid_credential(tag) for tag in ProviderTag}
