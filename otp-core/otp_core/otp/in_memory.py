"""
In-Memory OTP Store
===================
In-process OTP store with explicit TTL checks and a background sweep.
"""

import asyncio
import time
from typing import Callable, Dict, Optional
import structlog

from ..errors import InvalidCodeError, StillValidError
from ..locks import StripedLock
from ..sweeper import PeriodicSweeper
from .generator import CodeGenerator
from .hashing import codes_match, hash_identifier
from .models import OTPRecord

logger = structlog.get_logger(__name__)


class InMemoryOTPStore:
    """
    In-process OTP store.

    Expiry is checked on every read; the periodic sweep only reclaims
    memory for identifiers that are never queried again. Suitable for a
    single process. Use RedisOTPStore when running more than one replica.
    """

    def __init__(
        self,
        generator: Optional[CodeGenerator] = None,
        ttl: float = 120.0,
        sweep_interval: Optional[float] = None,
        stripes: int = 64,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            generator: Code generator (6 digits by default)
            ttl: Seconds a code stays valid
            sweep_interval: Seconds between sweeps, capped at ``ttl``
            stripes: Number of lock stripes
            clock: Source of the current Unix time
        """
        self.generator = generator or CodeGenerator()
        self.ttl = ttl
        self.clock = clock
        self._records: Dict[str, OTPRecord] = {}
        self._locks = StripedLock(stripes)
        self._sweeper = PeriodicSweeper(
            "otp_store",
            self.sweep,
            min(sweep_interval or ttl, ttl),
        )

    def __len__(self) -> int:
        return len(self._records)

    async def issue(self, identifier: str) -> str:
        """
        Issue a new code unless a live one exists.

        Raises:
            StillValidError: If a non-expired code exists
            TransientError: If the random source fails
        """
        self._sweeper.start()

        async with self._locks.for_key(identifier):
            now = self.clock()
            current = self._records.get(identifier)
            if current is not None and not current.is_expired(now):
                raise StillValidError(current.expires_in(now))

            code = self.generator.generate()
            self._records[identifier] = OTPRecord(
                identifier=identifier,
                code=code,
                issued_at=now,
                ttl=self.ttl,
            )

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
        """
        async with self._locks.for_key(identifier):
            record = self._records.get(identifier)
            if record is None:
                raise InvalidCodeError()

            if record.is_expired(self.clock()):
                del self._records[identifier]
                raise InvalidCodeError()

            if not codes_match(candidate, record.code):
                raise InvalidCodeError()

            del self._records[identifier]

        logger.info("otp_consumed", identifier_hash=hash_identifier(identifier))

    async def sweep(self) -> int:
        """Remove expired records. Returns the number removed."""
        removed = 0
        for identifier in list(self._records):
            async with self._locks.for_key(identifier):
                record = self._records.get(identifier)
                if record is not None and record.is_expired(self.clock()):
                    del self._records[identifier]
                    removed += 1
            # Yield between records so foreground calls interleave
            await asyncio.sleep(0)
        return removed

    async def close(self) -> None:
        """Stop the background sweep and drop all records."""
        await self._sweeper.stop()
        self._records.clear()
