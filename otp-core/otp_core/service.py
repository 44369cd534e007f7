"""
OTP Service
===========
Public entry point: issue and verify one-time passcodes.

Example:
    service = create_service()

    code = await service.request_code("09012345678")
    # deliver the code out of band
    await service.verify_code("09012345678", code)

    await service.shutdown()
"""

import asyncio
import time
from typing import Dict
import structlog

from .errors import ServiceClosedError
from .health import (
    ComponentHealth,
    HealthReport,
    HealthStatus,
    check_memory,
    check_redis,
)
from .otp.base import OTPStore
from .otp.hashing import hash_identifier
from .rate_limit.base import AttemptLimiter

logger = structlog.get_logger(__name__)


class OTPService:
    """
    Composes an OTP store and an attempt limiter.

    Only verification is rate-limited; issuance is bounded solely by the
    one-live-code rule. The limiter always runs before the store, so a
    rate-limited caller learns nothing about the stored code and every
    guess, right or wrong, counts against the window.
    """

    def __init__(
        self,
        store: OTPStore,
        limiter: AttemptLimiter,
        backend: str = "memory",
        redis_client=None,
        owns_redis_client: bool = False,
    ):
        self.store = store
        self.limiter = limiter
        self.backend = backend
        self._redis = redis_client
        self._owns_redis = owns_redis_client
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise ServiceClosedError()

    async def request_code(self, identifier: str) -> str:
        """
        Issue a code for ``identifier``.

        Raises:
            StillValidError: A live code already exists
            TransientError: Storage or random source failure
            ServiceClosedError: Called after shutdown
        """
        self._ensure_open()
        return await asyncio.shield(self.store.issue(identifier))

    async def verify_code(self, identifier: str, code: str) -> None:
        """
        Verify and consume ``code`` for ``identifier``.

        Raises:
            RateLimitedError: Too many recent attempts; the store is not consulted
            InvalidCodeError: No matching live code
            TransientError: Storage failure
            ServiceClosedError: Called after shutdown
        """
        self._ensure_open()
        # Runs to completion even if the caller is cancelled
        await asyncio.shield(self._verify(identifier, code))

    async def _verify(self, identifier: str, code: str) -> None:
        info = await self.limiter.admit(identifier)
        logger.debug(
            "otp_attempt_admitted",
            identifier_hash=hash_identifier(identifier),
            remaining=info.remaining,
        )
        await self.store.verify(identifier, code)

    async def health(self) -> HealthReport:
        """Report backend connectivity."""
        components: Dict[str, ComponentHealth] = {}
        status = HealthStatus.HEALTHY

        if self._closed:
            status = HealthStatus.UNHEALTHY
        elif self._redis is not None:
            components["redis"] = await check_redis(self._redis)
            if components["redis"].status == "error":
                status = HealthStatus.UNHEALTHY
        else:
            components["memory"] = check_memory()

        return HealthReport(
            status=status,
            backend=self.backend,
            components=components,
            timestamp=time.time(),
        )

    async def shutdown(self) -> None:
        """Stop background tasks and release connections. Idempotent."""
        if self._closed:
            return
        self._closed = True

        await self.store.close()
        await self.limiter.close()
        if self._redis is not None and self._owns_redis:
            await self._redis.aclose()

        logger.info("otp_service_shutdown", backend=self.backend)

    async def __aenter__(self) -> "OTPService":
        return self

    async def __aexit__(self, *args) -> None:
        await self.shutdown()
