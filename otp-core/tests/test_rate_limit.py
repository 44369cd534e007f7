"""
Unit Tests for Attempt Rate Limiting
====================================
"""

import asyncio

import pytest


class TestInMemoryAttemptLimiter:
    """Tests for the in-process sliding window limiter."""

    @pytest.mark.asyncio
    async def test_cap_enforced(self, clock):
        """Should admit cap attempts, then block."""
        from otp_core.rate_limit import InMemoryAttemptLimiter
        from otp_core.errors import RateLimitedError

        limiter = InMemoryAttemptLimiter(cap=3, window=600, clock=clock)

        remaining = []
        for _ in range(3):
            info = await limiter.admit("09012345678")
            remaining.append(info.remaining)
            clock.advance(1)

        assert remaining == [2, 1, 0]

        with pytest.raises(RateLimitedError) as exc_info:
            await limiter.admit("09012345678")

        # Oldest attempt was 3s ago
        assert exc_info.value.retry_after == pytest.approx(597)
        await limiter.close()

    @pytest.mark.asyncio
    async def test_check_reports_blocked(self, clock):
        from otp_core.rate_limit import InMemoryAttemptLimiter, RateLimitResult

        limiter = InMemoryAttemptLimiter(cap=1, window=60, clock=clock)

        assert (await limiter.check("user1")).result == RateLimitResult.ALLOWED
        info = await limiter.check("user1")

        assert info.allowed is False
        assert info.result == RateLimitResult.BLOCKED
        assert info.remaining == 0
        await limiter.close()

    @pytest.mark.asyncio
    async def test_rejected_attempts_not_recorded(self, clock):
        """Blocked attempts should not extend the window."""
        from otp_core.rate_limit import InMemoryAttemptLimiter
        from otp_core.errors import RateLimitedError

        limiter = InMemoryAttemptLimiter(cap=2, window=600, clock=clock)
        await limiter.admit("user1")
        await limiter.admit("user1")

        for _ in range(5):
            clock.advance(100)
            with pytest.raises(RateLimitedError):
                await limiter.admit("user1")

        clock.advance(101)
        await limiter.admit("user1")
        await limiter.close()

    @pytest.mark.asyncio
    async def test_window_slides(self, clock):
        """Attempts leave the window one by one, not all at once."""
        from otp_core.rate_limit import InMemoryAttemptLimiter
        from otp_core.errors import RateLimitedError

        limiter = InMemoryAttemptLimiter(cap=3, window=600, clock=clock)
        await limiter.admit("user1")  # t=0
        clock.advance(300)
        await limiter.admit("user1")  # t=300
        clock.advance(100)
        await limiter.admit("user1")  # t=400

        clock.advance(200)  # t=600, first attempt still counted
        with pytest.raises(RateLimitedError):
            await limiter.admit("user1")

        clock.advance(1)  # t=601, first attempt pruned
        info = await limiter.admit("user1")
        assert info.remaining == 0

        with pytest.raises(RateLimitedError):
            await limiter.admit("user1")
        await limiter.close()

    @pytest.mark.asyncio
    async def test_admitted_again_after_window(self, clock):
        from otp_core.rate_limit import InMemoryAttemptLimiter

        limiter = InMemoryAttemptLimiter(cap=3, window=600, clock=clock)
        for _ in range(3):
            await limiter.admit("user1")

        clock.advance(601)

        info = await limiter.admit("user1")
        assert info.remaining == 2
        await limiter.close()

    @pytest.mark.asyncio
    async def test_separate_keys(self, clock):
        """Different identifiers have separate windows."""
        from otp_core.rate_limit import InMemoryAttemptLimiter
        from otp_core.errors import RateLimitedError

        limiter = InMemoryAttemptLimiter(cap=2, window=600, clock=clock)
        await limiter.admit("user1")
        await limiter.admit("user1")

        with pytest.raises(RateLimitedError):
            await limiter.admit("user1")

        assert (await limiter.admit("user2")).allowed is True
        await limiter.close()

    @pytest.mark.asyncio
    async def test_concurrent_attempts_respect_cap(self, clock):
        from otp_core.rate_limit import InMemoryAttemptLimiter

        limiter = InMemoryAttemptLimiter(cap=3, window=600, clock=clock)

        results = await asyncio.gather(
            *(limiter.check("user1") for _ in range(10))
        )

        assert sum(1 for info in results if info.allowed) == 3
        await limiter.close()

    @pytest.mark.asyncio
    async def test_sweep_drops_idle_windows(self, clock):
        from otp_core.rate_limit import InMemoryAttemptLimiter

        limiter = InMemoryAttemptLimiter(cap=3, window=600, clock=clock)
        await limiter.admit("user1")
        clock.advance(300)
        await limiter.admit("user2")
        clock.advance(301)

        removed = await limiter.sweep()

        assert removed == 1
        assert len(limiter) == 1
        await limiter.close()
        assert len(limiter) == 0

    @pytest.mark.asyncio
    async def test_sweep_yields_to_foreground(self, clock):
        """Attempts are admitted while a large sweep is still in progress."""
        from otp_core.rate_limit import InMemoryAttemptLimiter

        limiter = InMemoryAttemptLimiter(cap=3, window=600, clock=clock)
        for i in range(5000):
            await limiter.admit(f"user{i}")
        clock.advance(601)

        seen = []

        async def foreground():
            seen.append(len(limiter))
            return await limiter.admit("late-user")

        removed, info = await asyncio.gather(
            asyncio.create_task(limiter.sweep()),
            asyncio.create_task(foreground()),
        )

        assert removed == 5000
        assert seen[0] > 4000
        assert info.allowed is True
        await limiter.close()

    @pytest.mark.parametrize("kwargs", [{"cap": 0}, {"cap": -1}, {"window": 0}])
    def test_rejects_invalid_arguments(self, kwargs):
        """Limiters refuse settings that could never admit an attempt."""
        from otp_core.rate_limit import InMemoryAttemptLimiter, RedisAttemptLimiter

        with pytest.raises(ValueError):
            InMemoryAttemptLimiter(**kwargs)
        with pytest.raises(ValueError):
            RedisAttemptLimiter(None, **kwargs)


class TestRedisAttemptLimiter:
    """Tests for the Redis sorted-set limiter."""

    @pytest.mark.asyncio
    async def test_cap_enforced(self, redis_client, clock):
        from otp_core.rate_limit import RedisAttemptLimiter
        from otp_core.errors import RateLimitedError

        limiter = RedisAttemptLimiter(redis_client, cap=3, window=600, clock=clock)

        remaining = []
        for _ in range(3):
            info = await limiter.admit("09012345678")
            remaining.append(info.remaining)

        assert remaining == [2, 1, 0]

        clock.advance(10)
        with pytest.raises(RateLimitedError) as exc_info:
            await limiter.admit("09012345678")

        assert exc_info.value.retry_after == pytest.approx(590)
        # Rejected attempts are not recorded
        assert await redis_client.zcard(limiter.get_key("09012345678")) == 3

    @pytest.mark.asyncio
    async def test_same_instant_attempts_all_count(self, redis_client, clock):
        """Attempts sharing a timestamp must not collapse into one member."""
        from otp_core.rate_limit import RedisAttemptLimiter

        limiter = RedisAttemptLimiter(redis_client, cap=3, window=600, clock=clock)

        results = [await limiter.check("user1") for _ in range(4)]

        assert [info.allowed for info in results] == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_concurrent_attempts_respect_cap(self, redis_client, clock):
        from otp_core.rate_limit import RedisAttemptLimiter

        limiter = RedisAttemptLimiter(redis_client, cap=3, window=600, clock=clock)

        results = await asyncio.gather(
            *(limiter.check("user1") for _ in range(10))
        )

        assert sum(1 for info in results if info.allowed) == 3
        assert await redis_client.zcard(limiter.get_key("user1")) == 3

    @pytest.mark.asyncio
    async def test_window_slides(self, redis_client, clock):
        from otp_core.rate_limit import RedisAttemptLimiter
        from otp_core.errors import RateLimitedError

        limiter = RedisAttemptLimiter(redis_client, cap=3, window=600, clock=clock)
        await limiter.admit("user1")
        clock.advance(300)
        await limiter.admit("user1")
        clock.advance(100)
        await limiter.admit("user1")

        clock.advance(200)
        with pytest.raises(RateLimitedError):
            await limiter.admit("user1")

        clock.advance(1)
        info = await limiter.admit("user1")
        assert info.remaining == 0

    @pytest.mark.asyncio
    async def test_window_key_expires(self, redis_client, clock):
        """The sorted set carries an expiry of one window."""
        from otp_core.rate_limit import RedisAttemptLimiter

        limiter = RedisAttemptLimiter(redis_client, cap=3, window=600, clock=clock)
        await limiter.admit("user1")

        ttl_ms = await redis_client.pttl(limiter.get_key("user1"))
        assert 0 < ttl_ms <= 600_000

    @pytest.mark.asyncio
    async def test_redis_failure_is_transient(self, clock):
        from unittest.mock import AsyncMock
        from redis.exceptions import ConnectionError
        from otp_core.rate_limit import RedisAttemptLimiter
        from otp_core.errors import TransientError

        client = AsyncMock()
        client.script_load.side_effect = ConnectionError("connection refused")
        limiter = RedisAttemptLimiter(client, clock=clock)

        with pytest.raises(TransientError) as exc_info:
            await limiter.admit("user1")

        assert isinstance(exc_info.value.last_exception, ConnectionError)
