"""
Attempt Rate Limiting
=====================
Sliding window limiters for verification attempts, in-process and Redis.
"""

from .models import RateLimitResult, RateLimitInfo
from .base import AttemptLimiter
from .in_memory import InMemoryAttemptLimiter
from .redis_limiter import RedisAttemptLimiter, SLIDING_WINDOW_SCRIPT

__all__ = [
    # Models
    "RateLimitResult",
    "RateLimitInfo",
    # Limiters
    "AttemptLimiter",
    "InMemoryAttemptLimiter",
    "RedisAttemptLimiter",
    # Scripts
    "SLIDING_WINDOW_SCRIPT",
]
