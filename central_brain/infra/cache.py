"""
Orchestration Caches
====================

Two independent, process-local TTL caches owned by the orchestration layer.

Design:
- ContextCache: assembled ProcessingContext per (content, categories, feature)
- ResponseCache: raw provider text per (provider, kind, content)
- Instances are created once and injected into the Context Orchestrator and
  Provider Router; ``reset()`` drains them in bulk
- Trimming is batch-based, not LRU: the context cache drops every expired
  entry once it grows past its ceiling, the response cache drops the oldest
  inserted batch
- Single-threaded asyncio access only; a duplicate write is last-writer-wins
"""

from __future__ import annotations

import hashlib
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

V = TypeVar("V")

def content_hash(text: str) -> str:
    """Short stable digest used in every cache key."""
    return hashlib.sha256(text.encode()).hexdigest()[:16]

@dataclass
class _CachedValue(Generic[V]):
    value: V
    created_at: float
    ttl_s: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl_s

# ── Base ─────────────────────────────────────────────────────────────────────

class TTLCache(Generic[V]):
    """Insertion-ordered mapping with per-entry expiry and hit/miss counters."""

    def __init__(
        self,
        max_entries: int,
        default_ttl_s: float = 300.0,
        clock: Callable[[], float] = time.time,
    ):
        self._cache: OrderedDict[str, _CachedValue[V]] = OrderedDict()
        self._max_entries = max_entries
        self._default_ttl = default_ttl_s
        self._clock = clock
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> V | None:
        entry = self._cache.get(key)
        if entry is None:
            self._misses += 1
            return None
        if entry.is_expired(self._clock()):
            del self._cache[key]
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def put(self, key: str, value: V, ttl_s: float | None = None) -> None:
        # Re-insert so a refreshed key counts as newest
        self._cache.pop(key, None)
        self._cache[key] = _CachedValue(
            value=value,
            created_at=self._clock(),
            ttl_s=ttl_s or self._default_ttl,
        )
        if len(self._cache) > self._max_entries:
            self._evictions += self._trim()

    def _trim(self) -> int:
        raise NotImplementedError

    def reset(self) -> None:
        self._cache.clear()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    @property
    def hit_rate(self) -> float:
        total = self._hits + self._misses
        return self._hits / total if total > 0 else 0.0

    @property
    def size(self) -> int:
        return len(self._cache)

    def get_stats(self) -> dict[str, Any]:
        return {
            "size": len(self._cache),
            "max_entries": self._max_entries,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self.hit_rate, 3),
            "evictions": self._evictions,
        }

# ── Concrete caches ──────────────────────────────────────────────────────────

class ContextCache(TTLCache[V]):
    """Context cache. Past the ceiling, every expired entry is dropped."""

    def __init__(
        self,
        max_entries: int = 50,
        default_ttl_s: float = 300.0,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(max_entries, default_ttl_s, clock)

    def _trim(self) -> int:
        now = self._clock()
        expired = [k for k, v in self._cache.items() if v.is_expired(now)]
        for key in expired:
            del self._cache[key]
        return len(expired)

class ResponseCache(TTLCache[V]):
    """Provider-response cache. Past the ceiling, the oldest batch is dropped."""

    def __init__(
        self,
        max_entries: int = 100,
        default_ttl_s: float = 300.0,
        evict_batch: int = 50,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(max_entries, default_ttl_s, clock)
        self._evict_batch = evict_batch

    def _trim(self) -> int:
        victims = list(self._cache.keys())[: self._evict_batch]
        for key in victims:
            del self._cache[key]
        return len(victims)
