"""
Token bucket pacing for catalog API calls.

Hey future me - this limiter only SPACES calls out, it never retries! A 429 from the
catalog is surfaced to the caller as RateLimitExceededError immediately (retry policy is
the caller's call). What the bucket buys us is fewer 429s in the first place: a big
genre aggregate fires dozens of page + batch calls back to back and Spotify's rolling
window doesn't like that.

ALGORITHM: Token Bucket
- Bucket holds at most max_tokens
- Tokens refill at refill_rate per second
- Each request consumes 1 token
- Empty bucket: wait until one token has trickled in

USAGE:
    limiter = RateLimiter(RateLimiterConfig(max_tokens=10, refill_rate=2.0))

    async with limiter:
        response = await client.get(url)
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from vinylstats.config import CatalogSettings
from vinylstats.domain.exceptions import TransientCatalogError

logger = logging.getLogger(__name__)


@dataclass
class RateLimiterConfig:
    """Configuration for rate limiter.

    Spotify allows roughly 180 requests / minute = 3 req/sec with short bursts.
    We stay conservative at 2 req/sec sustained, 10 burst.
    """

    max_tokens: int = 10  # Bucket size
    refill_rate: float = 2.0  # Tokens per second


@dataclass
class RateLimiter:
    """Token Bucket Rate Limiter.

    Attributes:
        config: Rate limiter configuration
        name: Label used in log lines
        clock: Monotonic time source (injectable for tests)
    """

    config: RateLimiterConfig = field(default_factory=RateLimiterConfig)
    name: str = "catalog"
    clock: Callable[[], float] = time.monotonic

    # Internal state (not in __init__ signature)
    _tokens: float = field(default=0.0, init=False)
    _last_refill: float = field(default=0.0, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self) -> None:
        """Start with a full bucket."""
        self._tokens = float(self.config.max_tokens)
        self._last_refill = self.clock()

    @classmethod
    def from_settings(cls, settings: CatalogSettings) -> "RateLimiter":
        """Build the catalog limiter from settings."""
        return cls(
            config=RateLimiterConfig(
                max_tokens=settings.rate_limit_tokens,
                refill_rate=settings.rate_limit_refill_per_second,
            ),
            name="catalog",
        )

    def _refill_tokens(self) -> None:
        """Add the tokens that trickled in since the last refill."""
        now = self.clock()
        elapsed = now - self._last_refill
        self._tokens = min(
            float(self.config.max_tokens), self._tokens + elapsed * self.config.refill_rate
        )
        self._last_refill = now

    # Hey future me - the lock is held while we sleep on purpose. Waiters queue up FIFO
    # behind it instead of all waking at once and stampeding the bucket.
    # max_wait covers BOTH the queue behind the lock and the refill sleep, so a caller with
    # a time budget (per-call timeout, clamped by a Deadline) can't sit here past it.
    async def acquire(self, max_wait: float | None = None) -> float:
        """Take one token, sleeping until one is available.

        Args:
            max_wait: Give up after this many seconds (None = wait as long as it takes)

        Returns:
            Seconds spent waiting for the token

        Raises:
            TransientCatalogError: No token within max_wait
        """
        started = self.clock()
        try:
            async with asyncio.timeout(max_wait):
                await self._lock.acquire()
        except TimeoutError as e:
            raise TransientCatalogError(
                f"RateLimiter[{self.name}]: no token within {max_wait:.2f}s"
            ) from e

        try:
            self._refill_tokens()
            while self._tokens < 1.0:
                wait_time = (1.0 - self._tokens) / self.config.refill_rate
                if max_wait is not None and self.clock() - started + wait_time > max_wait:
                    raise TransientCatalogError(
                        f"RateLimiter[{self.name}]: no token within {max_wait:.2f}s"
                    )
                logger.debug(
                    f"RateLimiter[{self.name}]: No tokens available, waiting {wait_time:.2f}s"
                )
                await asyncio.sleep(wait_time)
                self._refill_tokens()

            self._tokens -= 1.0
            return self.clock() - started
        finally:
            self._lock.release()

    async def __aenter__(self) -> "RateLimiter":
        """Enter async context - acquire token."""
        await self.acquire()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        """Exit async context. The token stays consumed either way."""
        return None

    @property
    def available_tokens(self) -> float:
        """Current token count (for debugging)."""
        self._refill_tokens()
        return self._tokens


__all__ = ["RateLimiter", "RateLimiterConfig"]
