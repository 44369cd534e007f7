"""
OTP Store Protocol
==================
Contract shared by the in-process and Redis-backed stores.
"""

from typing import Protocol


class OTPStore(Protocol):
    """Owns identifier -> live code, one outstanding code per identifier."""

    async def issue(self, identifier: str) -> str:
        """Store and return a new code; raise StillValidError if one is live."""
        ...

    async def verify(self, identifier: str, candidate: str) -> None:
        """Consume a matching live code; raise InvalidCodeError otherwise."""
        ...

    async def close(self) -> None:
        ...
