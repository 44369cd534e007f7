"""
Redis Attempt Limiter
=====================
Sliding window limiter using Redis sorted sets and a Lua script for
atomic prune, count and conditional add.
"""

import time
import uuid
from typing import Callable

from ..scripting import LuaScript
from .base import AttemptLimiter
from .models import RateLimitInfo

# Returns {1, count_before} when admitted, {0, oldest_score} when capped
SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
local now = ARGV[1]
local max_stale = ARGV[2]
local window = tonumber(ARGV[3])
local cap = tonumber(ARGV[4])
local member = ARGV[5]

redis.call('ZREMRANGEBYSCORE', key, '-inf', max_stale)

local count = redis.call('ZCARD', key)
if count >= cap then
    local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
    return {0, oldest[2]}
end

redis.call('ZADD', key, now, member)
redis.call('PEXPIRE', key, window)
return {1, count}
"""


class RedisAttemptLimiter(AttemptLimiter):
    """
    Sliding window limiter backed by a Redis sorted set per identifier.

    Scores are attempt times in milliseconds; members are unique per
    attempt so attempts landing in the same millisecond all count. The
    key expires after one window of inactivity.
    """

    def __init__(
        self,
        redis_client,
        cap: int = 3,
        window: float = 600.0,
        key_prefix: str = "otp",
        timeout: float = 2.0,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(cap=cap, window=window)
        self.redis = redis_client
        self.key_prefix = key_prefix
        self.timeout = timeout
        self.clock = clock
        self._script = LuaScript("attempt_window", SLIDING_WINDOW_SCRIPT)

    def get_key(self, identifier: str) -> str:
        """Generate the Redis key holding an identifier's attempts."""
        return f"{self.key_prefix}:attempts:{identifier}"

    async def check(self, identifier: str) -> RateLimitInfo:
        """Check using sliding window algorithm."""
        now_ms = int(round(self.clock() * 1000))
        window_ms = int(round(self.window * 1000))

        allowed, value = await self._script.run(
            self.redis,
            [self.get_key(identifier)],
            [
                now_ms,
                f"({now_ms - window_ms}",
                window_ms,
                self.cap,
                f"{now_ms}-{uuid.uuid4().hex}",
            ],
            timeout=self.timeout,
        )

        if not int(allowed):
            oldest_ms = int(float(value))
            reset_at_ms = oldest_ms + window_ms
            return RateLimitInfo(
                allowed=False,
                remaining=0,
                limit=self.cap,
                reset_at=reset_at_ms / 1000,
                retry_after=(reset_at_ms - now_ms) / 1000,
            )

        return RateLimitInfo(
            allowed=True,
            remaining=self.cap - int(value) - 1,
            limit=self.cap,
            reset_at=(now_ms + window_ms) / 1000,
        )
