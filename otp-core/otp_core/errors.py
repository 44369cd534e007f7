"""
OTP Core Exceptions
===================
Error taxonomy returned to the request-handling layer.

Each exception carries a stable ``code`` so callers can map it to a
transport-level response without inspecting messages.
"""

from typing import Optional


class OTPError(Exception):
    """Base class for all OTP core errors."""

    code = "OTP_ERROR"


class StillValidError(OTPError):
    """Raised when a live code already exists for the identifier."""

    code = "OTP_STILL_VALID"

    def __init__(self, retry_after: float):
        self.retry_after = max(0.0, retry_after)
        super().__init__(
            f"A valid OTP still exists. Retry after {self.retry_after:.1f}s"
        )


class RateLimitedError(OTPError):
    """Raised when too many verification attempts were made recently."""

    code = "RATE_LIMITED"

    def __init__(self, retry_after: float):
        self.retry_after = max(0.0, retry_after)
        super().__init__(
            f"Rate limit exceeded. Retry after {self.retry_after:.1f}s"
        )


class InvalidCodeError(OTPError):
    """
    Raised when no matching live code exists.

    Wrong value, prior consumption, expiry and never-issued all
    surface as this error.
    """

    code = "INVALID_CODE"

    def __init__(self, message: str = "Invalid OTP code"):
        super().__init__(message)


class TransientError(OTPError):
    """Raised when the storage backend or random source fails."""

    code = "TRANSIENT"

    def __init__(self, message: str, last_exception: Optional[BaseException] = None):
        super().__init__(message)
        self.last_exception = last_exception


class ServiceClosedError(OTPError):
    """Raised when the service is used after shutdown."""

    code = "SERVICE_CLOSED"

    def __init__(self, message: str = "OTP service has been shut down"):
        super().__init__(message)
