"""
OTP Hashing Utilities
=====================
Comparison and privacy helpers for codes and identifiers.
"""

import hashlib
import hmac
import os
from typing import Optional

# Secret key for identifier hashes in logs; phone numbers are too few to
# hash without one.
_log_pepper: str = os.environ.get("OTP_LOG_PEPPER", "")


def codes_match(candidate: str, expected: str) -> bool:
    """
    Compare a user-provided code with the stored one.

    Uses constant-time comparison to prevent timing attacks.
    """
    return hmac.compare_digest(candidate.encode(), expected.encode())


def set_log_pepper(pepper: str) -> None:
    """Set the secret used by ``hash_identifier`` when no pepper is passed."""
    global _log_pepper
    _log_pepper = pepper


def log_pepper_configured() -> bool:
    return bool(_log_pepper)


def hash_identifier(identifier: str, pepper: Optional[str] = None) -> str:
    """
    Keyed hash of an identifier (phone number) for log output.

    Args:
        identifier: Phone number or equivalent
        pepper: Secret key; the configured log pepper when omitted

    Returns:
        First 16 hex characters of the HMAC-SHA-256 digest
    """
    key = _log_pepper if pepper is None else pepper
    return hmac.new(key.encode(), identifier.encode(), hashlib.sha256).hexdigest()[:16]
