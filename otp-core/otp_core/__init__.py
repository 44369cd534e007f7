"""
OTP Core Library
================
One-time passcode issuance and verification with per-identifier
attempt rate limiting, backed by Redis or in-process state.
"""

__version__ = "0.1.0"

# Configuration
from otp_core.config import OTPCoreConfig

# Errors
from otp_core.errors import (
    OTPError,
    StillValidError,
    RateLimitedError,
    InvalidCodeError,
    TransientError,
    ServiceClosedError,
)

# OTP
from otp_core.otp import (
    OTPRecord,
    CodeGenerator,
    InMemoryOTPStore,
    RedisOTPStore,
    hash_identifier,
    set_log_pepper,
)

# Rate Limiting
from otp_core.rate_limit import (
    AttemptLimiter,
    InMemoryAttemptLimiter,
    RedisAttemptLimiter,
    RateLimitInfo,
    RateLimitResult,
)

# Service
from otp_core.service import OTPService
from otp_core.factory import create_service, create_redis_client
from otp_core.health import HealthReport, HealthStatus, ComponentHealth
from otp_core.logging_config import configure_logging

__all__ = [
    # Configuration
    "OTPCoreConfig",
    # Errors
    "OTPError",
    "StillValidError",
    "RateLimitedError",
    "InvalidCodeError",
    "TransientError",
    "ServiceClosedError",
    # OTP
    "OTPRecord",
    "CodeGenerator",
    "InMemoryOTPStore",
    "RedisOTPStore",
    "hash_identifier",
    "set_log_pepper",
    # Rate Limiting
    "AttemptLimiter",
    "InMemoryAttemptLimiter",
    "RedisAttemptLimiter",
    "RateLimitInfo",
    "RateLimitResult",
    # Service
    "OTPService",
    "create_service",
    "create_redis_client",
    # Health
    "HealthReport",
    "HealthStatus",
    "ComponentHealth",
    # Logging
    "configure_logging",
]
