"""
Request Deadline
================

Per-request time budget threaded through every suspension point.

Design:
- Created once at the start of ``process_request`` and never mutated
- Stages ask for ``timeout_for(stage_cap)`` and pass the result to
  ``asyncio.wait_for``; the deadline clamps every stage cap
- ``total_s=None`` means unbounded; stage caps still apply
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from central_brain.core.exceptions import DeadlineExceededError

@dataclass(frozen=True, slots=True)
class RequestDeadline:
    """Per-request deadline.

    Immutable. Stages check remaining time rather than mutating it.
    """

    total_s: float | None = None
    created_at: float = field(default_factory=lambda: time.perf_counter())

    @classmethod
    def unbounded(cls) -> RequestDeadline:
        return cls(total_s=None)

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.created_at) * 1000

    @property
    def remaining_s(self) -> float | None:
        if self.total_s is None:
            return None
        return max(0.0, self.total_s - self.elapsed_ms / 1000)

    @property
    def is_expired(self) -> bool:
        remaining = self.remaining_s
        return remaining is not None and remaining <= 0

    def timeout_for(self, stage_cap_s: float | None) -> float | None:
        """Timeout for one stage, clamped to what is left of the request."""
        remaining = self.remaining_s
        if remaining is None:
            return stage_cap_s
        if stage_cap_s is None:
            return remaining
        return min(stage_cap_s, remaining)

    def check(self, stage: str) -> None:
        if self.is_expired:
            raise DeadlineExceededError(
                detail=f"Request deadline exceeded before {stage}",
                stage=stage,
            )
