"""
Rate limiting of failed login attempts per client IP.

A fixed window per (route, ip) stored in Redis:
- Key pattern: "ratelimit:{route}:{ip}"
- Every attempt reserves a slot with INCR before any credential check;
  EXPIRE is set when the window opens
- Attempts that succeed (or never reached a verdict) hand their slot back
  with DECR, so only failures stay counted
"""
import math
from dataclasses import dataclass

from redis.asyncio import Redis


@dataclass(frozen=True)
class RateLimitStatus:
    """Snapshot of a rate-limit window."""
    limited: bool
    failures: int
    remaining: int
    retry_after_seconds: int

    @property
    def retry_after_minutes(self) -> int:
        return max(1, math.ceil(self.retry_after_seconds / 60))


class LoginRateLimiter:
    """Counts failed attempts per IP inside a fixed window."""

    def __init__(self, redis: Redis, limit: int = 5, window_seconds: int = 15 * 60):
        self.redis = redis
        self.limit = limit
        self.window_seconds = window_seconds

    @staticmethod
    def _key(ip: str, route: str) -> str:
        return f"ratelimit:{route}:{ip}"

    def _status(self, count: int, ttl: int, limited: bool) -> RateLimitStatus:
        return RateLimitStatus(
            limited=limited,
            failures=count,
            remaining=max(0, self.limit - count),
            retry_after_seconds=ttl,
        )

    async def check(self, ip: str, route: str) -> RateLimitStatus:
        """
        Read the current window for an IP without modifying it.

        Args:
            ip: Client IP address
            route: Route identifier (e.g., "/login")

        Returns:
            RateLimitStatus; `limited` is True once the failure count
            reached the limit
        """
        key = self._key(ip, route)
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.get(key)
            pipe.ttl(key)
            raw_count, ttl = await pipe.execute()

        failures = max(0, int(raw_count)) if raw_count is not None else 0
        retry_after = ttl if ttl and ttl > 0 else 0
        if failures and retry_after == 0:
            # Counter without expiry; treat as a freshly opened window.
            retry_after = self.window_seconds

        return self._status(failures, retry_after, failures >= self.limit)

    async def reserve(self, ip: str, route: str) -> RateLimitStatus:
        """
        Atomically take one attempt slot for an IP.

        The increment happens before the caller does any work, so parallel
        attempts from the same IP cannot all slip under the limit. When the
        returned status is limited the caller must not proceed and should
        `release` the slot.

        Returns:
            RateLimitStatus with `failures` counting this attempt
        """
        key = self._key(ip, route)
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.ttl(key)
            count, ttl = await pipe.execute()

        if count == 1 or ttl is None or ttl < 0:
            await self.redis.expire(key, self.window_seconds)
            ttl = self.window_seconds
        count = int(count)
        return self._status(count, ttl, count > self.limit)

    async def release(self, ip: str, route: str) -> None:
        """Hand back a slot taken by `reserve` for an attempt that is not a failure."""
        key = self._key(ip, route)
        remaining = await self.redis.decr(key)
        if remaining < 0:
            # The window expired in between; DECR recreated it without a TTL.
            await self.redis.delete(key)

    async def record_failure(self, ip: str, route: str) -> int:
        """
        Count one failed attempt for an IP.

        Returns:
            Number of failures in the current window after the increment
        """
        return (await self.reserve(ip, route)).failures

    async def reset(self, ip: str, route: str) -> None:
        """Drop the window for an IP."""
        await self.redis.delete(self._key(ip, route))

    async def get_status(self, ip: str, route: str) -> dict:
        """
        Get current rate limit status for debugging/monitoring.

        Returns:
            Dict with remaining attempts, limit and seconds until reset
        """
        status = await self.check(ip, route)
        return {
            "remaining": status.remaining,
            "limit": self.limit,
            "reset_in_seconds": status.retry_after_seconds,
        }
