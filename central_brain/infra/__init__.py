"""Infrastructure: caches and telemetry."""

from central_brain.infra.cache import ContextCache, ResponseCache, TTLCache, content_hash

__all__ = ["ContextCache", "ResponseCache", "TTLCache", "content_hash"]
