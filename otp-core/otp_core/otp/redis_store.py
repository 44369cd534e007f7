"""
Redis OTP Store
===============
Redis-backed OTP store using Lua scripts for atomic operations.

Each code lives in a hash ``{prefix}:{identifier}:login`` holding the code,
its issuance time and its TTL in milliseconds. Redis removes the key with
a native PEXPIRE, but every script also compares the stored issuance time
with the caller's clock so a code is dead the instant its TTL elapses.
"""

import time
from typing import Callable, Optional
import structlog

from ..errors import InvalidCodeError, StillValidError
from ..scripting import LuaScript
from .generator import CodeGenerator
from .hashing import hash_identifier

logger = structlog.get_logger(__name__)

# Returns {1, 0} when stored, {0, issued_at_ms, ttl_ms} when a live code exists
ISSUE_SCRIPT = """
local key = KEYS[1]
local code = ARGV[1]
local now = tonumber(ARGV[2])
local ttl = tonumber(ARGV[3])

local record = redis.call('HMGET', key, 'issued_at_ms', 'ttl_ms')
if record[1] and record[2] then
    local issued_at = tonumber(record[1])
    local record_ttl = tonumber(record[2])
    if now - issued_at < record_ttl then
        return {0, record[1], record[2]}
    end
end

redis.call('DEL', key)
redis.call('HSET', key, 'code', code, 'issued_at_ms', ARGV[2], 'ttl_ms', ARGV[3])
redis.call('PEXPIRE', key, ttl)
return {1, 0, 0}
"""

# Returns 1 when the candidate matched and the code was consumed, else 0
VERIFY_SCRIPT = """
local key = KEYS[1]
local candidate = ARGV[1]
local now = tonumber(ARGV[2])

local record = redis.call('HMGET', key, 'code', 'issued_at_ms', 'ttl_ms')
if not record[1] or not record[2] or not record[3] then
    return 0
end

if now - tonumber(record[2]) >= tonumber(record[3]) then
    redis.call('DEL', key)
    return 0
end

if record[1] ~= candidate then
    return 0
end

redis.call('DEL', key)
return 1
"""


def _to_ms(seconds: float) -> int:
    return int(round(seconds * 1000))


class RedisOTPStore:
    """
    Redis-backed OTP store.

    Check-then-set in ``issue`` and match-then-delete in ``verify`` each run
    as one Lua script, so concurrent callers cannot interleave.
    """

    def __init__(
        self,
        redis_client,
        generator: Optional[CodeGenerator] = None,
        ttl: float = 120.0,
        key_prefix: str = "otp",
        timeout: float = 2.0,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            redis_client: Async Redis client
            generator: Code generator (6 digits by default)
            ttl: Seconds a code stays valid
            key_prefix: Prefix for Redis keys
            timeout: Upper bound in seconds for each Redis call
            clock: Source of the current Unix time
        """
        self.redis = redis_client
        self.generator = generator or CodeGenerator()
        self.ttl = ttl
        self.key_prefix = key_prefix
        self.timeout = timeout
        self.clock = clock
        self._issue = LuaScript("otp_issue", ISSUE_SCRIPT)
        self._verify = LuaScript("otp_verify", VERIFY_SCRIPT)

    def get_key(self, identifier: str) -> str:
        """Generate the Redis key holding an identifier's code."""
        return f"{self.key_prefix}:{identifier}:login"

    async def issue(self, identifier: str) -> str:
        """
        Issue a new code unless a live one exists.

        Raises:
            StillValidError: If a non-expired code exists
            TransientError: On Redis or random source failure
        """
        code = self.generator.generate()
        now_ms = _to_ms(self.clock())

        stored, issued_at_ms, ttl_ms = await self._issue.run(
            self.redis,
            [self.get_key(identifier)],
            [code, now_ms, _to_ms(self.ttl)],
            timeout=self.timeout,
        )

        if not int(stored):
            remaining_ms = int(float(issued_at_ms)) + int(float(ttl_ms)) - now_ms
            raise StillValidError(remaining_ms / 1000)

        logger.info(
            "otp_issued",
            identifier_hash=hash_identifier(identifier),
            expires_in=self.ttl,
        )
        return code

    async def verify(self, identifier: str, candidate: str) -> None:
        """
        Consume the live code for ``identifier`` if ``candidate`` matches.

        Raises:
            InvalidCodeError: If no live code exists or it does not match
            TransientError: On Redis failure
        """
        matched = await self._verify.run(
            self.redis,
            [self.get_key(identifier)],
            [candidate, _to_ms(self.clock())],
            timeout=self.timeout,
        )
        if not int(matched):
            raise InvalidCodeError()

        logger.info("otp_consumed", identifier_hash=hash_identifier(identifier))

    async def close(self) -> None:
        """Nothing to release; the Redis client is owned by the caller."""
