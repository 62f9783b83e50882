# src/ratelimit/limiter.py - v1
"""Fixed-window rate limiter keyed by (category, identity).

Process-local and in-memory. The first request of a window opens it; the
window closes ``window_s`` later and the next request starts a new one.
A denied request leaves the counter untouched. A background task
periodically drops closed windows so memory stays bounded by active
identities.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class RateLimitCategory(str, Enum):
    API = "api"
    AUTH = "auth"
    CREATE_CONTENT = "create_content"
    SCAN = "scan"
    DMCA = "dmca"
    BILLING = "billing"


@dataclass(frozen=True)
class RateLimitRule:
    window_s: float
    max_requests: int


RATE_LIMITS: dict[RateLimitCategory, RateLimitRule] = {
    RateLimitCategory.API: RateLimitRule(window_s=60, max_requests=100),
    RateLimitCategory.AUTH: RateLimitRule(window_s=15 * 60, max_requests=10),
    RateLimitCategory.CREATE_CONTENT: RateLimitRule(window_s=60 * 60, max_requests=50),
    RateLimitCategory.SCAN: RateLimitRule(window_s=60 * 60, max_requests=100),
    RateLimitCategory.DMCA: RateLimitRule(window_s=60 * 60, max_requests=50),
    RateLimitCategory.BILLING: RateLimitRule(window_s=60, max_requests=10),
}


class RateLimitDecision(BaseModel):
    """Outcome of one check."""

    allowed: bool
    remaining: int
    reset_in_seconds: int

    @property
    def retry_after_seconds(self) -> int:
        return 0 if self.allowed else self.reset_in_seconds

    @property
    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_in_seconds),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after_seconds)
        return headers


def resolve_identity(
    user_id: str | None = None,
    forwarded_for: str | None = None,
    real_ip: str | None = None,
) -> str:
    """``user:<id>`` for known users, else ``ip:<address>``.

    The address is the first X-Forwarded-For entry, then X-Real-IP, then
    ``unknown``.
    """
    if user_id:
        return f"user:{user_id}"
    first_hop = (forwarded_for or "").split(",")[0].strip()
    return f"ip:{first_hop or (real_ip or '').strip() or 'unknown'}"


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """In-memory fixed-window limiter with an optional background sweeper."""

    def __init__(
        self,
        rules: dict[RateLimitCategory, RateLimitRule] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._rules = dict(RATE_LIMITS if rules is None else rules)
        self._clock = clock
        self._windows: dict[tuple[RateLimitCategory, str], _Window] = {}
        self._sweeper: asyncio.Task[None] | None = None

    def rule_for(self, category: RateLimitCategory | str) -> RateLimitRule:
        return self._rules[RateLimitCategory(category)]

    def check(self, identity: str, category: RateLimitCategory | str) -> RateLimitDecision:
        """Count one request against (category, identity)."""
        category = RateLimitCategory(category)
        rule = self._rules[category]
        key = (category, identity)
        now = self._clock()

        window = self._windows.get(key)
        if window is None or now > window.reset_at:
            self._windows[key] = _Window(count=1, reset_at=now + rule.window_s)
            return RateLimitDecision(
                allowed=True,
                remaining=rule.max_requests - 1,
                reset_in_seconds=math.ceil(rule.window_s),
            )

        reset_in = math.ceil(window.reset_at - now)
        if window.count >= rule.max_requests:
            logger.warning("Rate limit exceeded for %s on %s", identity, category.value)
            return RateLimitDecision(allowed=False, remaining=0, reset_in_seconds=reset_in)

        window.count += 1
        return RateLimitDecision(
            allowed=True,
            remaining=rule.max_requests - window.count,
            reset_in_seconds=reset_in,
        )

    def sweep(self) -> int:
        """Drop windows whose reset time has passed. Returns the number removed."""
        now = self._clock()
        expired = [k for k, w in self._windows.items() if now > w.reset_at]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug("Rate limiter swept %d expired windows", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)

    # --- Background sweeper ---

    @property
    def sweeper_running(self) -> bool:
        return (
            self._sweeper is not None
            and not self._sweeper.done()
            and self._sweeper.get_loop().is_running()
        )

    def start_sweeper(self, interval_s: float = 300) -> asyncio.Task[None]:
        """Start periodic sweeping on the running event loop (idempotent)."""
        loop = asyncio.get_running_loop()
        if not self.sweeper_running or self._sweeper.get_loop() is not loop:
            self._sweeper = loop.create_task(self._sweep_forever(interval_s))
        return self._sweeper

    async def stop_sweeper(self) -> None:
        task, self._sweeper = self._sweeper, None
        if task is None or task.get_loop() is not asyncio.get_running_loop():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _sweep_forever(self, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            self.sweep()
