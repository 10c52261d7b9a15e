"""
Per-client admission control with token buckets.
In-process only; every gateway instance limits independently.
"""
from __future__ import annotations

import asyncio
import time
from typing import Callable, Iterable, Optional

from shared.models.domain import RateDecision
from shared.utils.logging import get_logger
from shared.utils.metrics import RATE_LIMIT_BUCKETS, RATE_LIMIT_DECISIONS

logger = get_logger(__name__)

REASON_MISSING_AGENT = "missing user agent"
REASON_BLOCKED_AGENT = "automated client blocked"
REASON_RATE_LIMITED = "rate limit exceeded"

SWEEP_INTERVAL_S = 60.0
BUCKET_IDLE_TTL_S = 300.0


class TokenBucket:
    """Refills at limit/interval tokens per second up to burst."""

    __slots__ = ("tokens", "last_refill", "lock")

    def __init__(self, burst: int, now: float) -> None:
        self.tokens = float(burst)
        self.last_refill = now
        self.lock = asyncio.Lock()

    def try_consume(self, now: float, burst: int, rate_per_s: float) -> bool:
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(float(burst), self.tokens + elapsed * rate_per_s)
        self.last_refill = now
        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False


class RateLimiter:
    """
    User-agent screening followed by a token bucket per client id.

    Refill and consume for one client run under that client's lock; the
    registry lock only guards bucket creation and sweeping.
    """

    def __init__(
        self,
        limit: int = 60,
        burst: int = 10,
        interval_s: float = 60.0,
        blocked_agents: Iterable[str] = ("curl", "python-requests", "postman"),
        *,
        sweep_interval_s: float = SWEEP_INTERVAL_S,
        idle_ttl_s: float = BUCKET_IDLE_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._burst = max(1, burst)
        self._rate_per_s = max(1, limit) / max(interval_s, 1e-9)
        self._blocked = tuple(a.lower() for a in blocked_agents if a)
        self._sweep_interval_s = sweep_interval_s
        self._idle_ttl_s = idle_ttl_s
        self._clock = clock
        self._buckets: dict[str, TokenBucket] = {}
        self._registry_lock = asyncio.Lock()
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._buckets)

    def _screen_agent(self, user_agent: Optional[str]) -> Optional[str]:
        if not user_agent or not user_agent.strip():
            return REASON_MISSING_AGENT
        lowered = user_agent.lower()
        if any(sig in lowered for sig in self._blocked):
            return REASON_BLOCKED_AGENT
        return None

    async def _bucket(self, client_id: str, now: float) -> TokenBucket:
        async with self._registry_lock:
            bucket = self._buckets.get(client_id)
            if bucket is None:
                bucket = self._buckets[client_id] = TokenBucket(self._burst, now)
                RATE_LIMIT_BUCKETS.set(len(self._buckets))
            return bucket

    async def check(self, client_id: str, user_agent: Optional[str]) -> RateDecision:
        reason = self._screen_agent(user_agent)
        if reason:
            outcome = "missing_agent" if reason == REASON_MISSING_AGENT else "blocked_agent"
            RATE_LIMIT_DECISIONS.labels(outcome=outcome).inc()
            logger.info("rate_limit_rejected", client=client_id, reason=reason)
            return RateDecision(allowed=False, reason=reason)

        now = self._clock()
        if now - self._last_sweep >= self._sweep_interval_s:
            await self.sweep()

        bucket = await self._bucket(client_id, now)
        async with bucket.lock:
            allowed = bucket.try_consume(self._clock(), self._burst, self._rate_per_s)

        if not allowed:
            RATE_LIMIT_DECISIONS.labels(outcome="rate_limited").inc()
            logger.info("rate_limit_rejected", client=client_id, reason=REASON_RATE_LIMITED)
            return RateDecision(allowed=False, reason=REASON_RATE_LIMITED)

        RATE_LIMIT_DECISIONS.labels(outcome="allowed").inc()
        return RateDecision(allowed=True)

    async def sweep(self) -> int:
        """Drop buckets untouched for longer than the idle TTL. Returns how many were removed."""
        async with self._registry_lock:
            now = self._clock()
            self._last_sweep = now
            idle = [
                key
                for key, bucket in self._buckets.items()
                if now - bucket.last_refill > self._idle_ttl_s and not bucket.lock.locked()
            ]
            for key in idle:
                del self._buckets[key]
            RATE_LIMIT_BUCKETS.set(len(self._buckets))
        if idle:
            logger.debug("rate_limit_buckets_swept", removed=len(idle), remaining=len(self._buckets))
        return len(idle)

    @property
    def retry_after_s(self) -> int:
        """Seconds until one token refills."""
        return max(1, round(1 / self._rate_per_s))
