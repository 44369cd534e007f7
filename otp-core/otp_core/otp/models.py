"""
OTP Models
==========
Data model for an issued one-time passcode.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class OTPRecord:
    """A live code issued for one identifier."""
    identifier: str
    code: str
    issued_at: float  # Unix timestamp
    ttl: float  # Seconds of validity

    @property
    def expires_at(self) -> float:
        return self.issued_at + self.ttl

    def is_expired(self, now: float) -> bool:
        return now - self.issued_at >= self.ttl

    def expires_in(self, now: float) -> float:
        """Seconds of validity left at ``now`` (never negative)."""
        return max(0.0, self.expires_at - now)
