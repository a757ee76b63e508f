"""Overall wall-clock budget for multi-request catalog operations."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from vinylstats.domain.exceptions import TransientCatalogError


# Hey future me - each catalog call has its own timeout, but a playlist with 200 pages
# times 10s each is still over half an hour of "working...". A Deadline caps the WHOLE
# collection: checked before every request, and every per-call timeout is clamped to what's
# left. Running out is a TRANSIENT failure (try again later), same as any other timeout.
@dataclass(frozen=True)
class Deadline:
    """Absolute point in time (on ``clock``) after which no new request may start."""

    expires_at: float
    clock: Callable[[], float] = field(default=time.monotonic, compare=False)

    @classmethod
    def after(cls, seconds: float, clock: Callable[[], float] = time.monotonic) -> "Deadline":
        """Deadline ``seconds`` from now."""
        return cls(expires_at=clock() + seconds, clock=clock)

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(self.expires_at - self.clock(), 0.0)

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, what: str = "request") -> None:
        """Raise TransientCatalogError when the budget is used up."""
        if self.expired:
            raise TransientCatalogError(f"Deadline exceeded before {what}")

    def clamp(self, timeout: float | None) -> float:
        """Per-call timeout limited to the remaining budget."""
        left = self.remaining()
        return left if timeout is None else min(timeout, left)


__all__ = ["Deadline"]
