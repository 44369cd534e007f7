"""
Redis Lua Scripts
=================
Atomic server-side scripts with bounded call time.
"""

import asyncio
from typing import Any, Optional, Sequence
import structlog
from redis.exceptions import NoScriptError, RedisError, ResponseError

from .errors import TransientError

logger = structlog.get_logger(__name__)


def _is_noscript(error: ResponseError) -> bool:
    return isinstance(error, NoScriptError) or str(error).startswith("NOSCRIPT")


class LuaScript:
    """
    A Lua script loaded once into Redis and run with EVALSHA.

    The script is reloaded once if Redis forgot it (restart or
    SCRIPT FLUSH). Every call is bounded by ``timeout``.
    """

    def __init__(self, name: str, source: str):
        self.name = name
        self.source = source
        self._sha: Optional[str] = None

    async def _ensure_loaded(self, redis_client) -> str:
        """Load Lua script into Redis if needed."""
        if self._sha is None:
            self._sha = await redis_client.script_load(self.source)
        return self._sha

    async def _call(self, redis_client, keys: Sequence[str], args: Sequence[Any]) -> Any:
        sha = await self._ensure_loaded(redis_client)
        try:
            return await redis_client.evalsha(sha, len(keys), *keys, *args)
        except ResponseError as e:
            if not _is_noscript(e):
                raise
            self._sha = None
            sha = await self._ensure_loaded(redis_client)
            return await redis_client.evalsha(sha, len(keys), *keys, *args)

    async def run(
        self,
        redis_client,
        keys: Sequence[str],
        args: Sequence[Any],
        timeout: float,
    ) -> Any:
        """
        Execute the script atomically.

        Raises:
            TransientError: On Redis failure or timeout
        """
        try:
            return await asyncio.wait_for(
                self._call(redis_client, keys, args), timeout=timeout
            )
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.error("redis_script_failed", script=self.name, error=str(e) or type(e).__name__)
            raise TransientError(
                f"Storage unavailable while running {self.name}", last_exception=e
            ) from e
