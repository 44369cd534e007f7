"""
Attempt Limiter Base
====================
Shared admission logic for the in-process and Redis-backed limiters.
"""

from abc import ABC, abstractmethod
import structlog

from ..errors import RateLimitedError
from ..otp.hashing import hash_identifier
from .models import RateLimitInfo

logger = structlog.get_logger(__name__)


class AttemptLimiter(ABC):
    """
    Sliding-window cap on verification attempts per identifier.

    Subclasses implement ``check``, which prunes, counts and records in
    one atomic step.
    """

    def __init__(self, cap: int = 3, window: float = 600.0):
        """
        Args:
            cap: Attempts allowed per window
            window: Window size in seconds
        """
        if cap < 1:
            raise ValueError("cap must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")
        self.cap = cap
        self.window = window

    @abstractmethod
    async def check(self, identifier: str) -> RateLimitInfo:
        """Decide on and, when allowed, record one attempt."""

    async def admit(self, identifier: str) -> RateLimitInfo:
        """
        Admit one attempt.

        Raises:
            RateLimitedError: If ``cap`` attempts were already admitted
                within the trailing window
        """
        info = await self.check(identifier)
        if not info.allowed:
            logger.warning(
                "otp_attempt_rate_limited",
                identifier_hash=hash_identifier(identifier),
                retry_after=info.retry_after,
            )
            raise RateLimitedError(info.retry_after or 0.0)
        return info

    async def close(self) -> None:
        """Release background resources, if any."""
