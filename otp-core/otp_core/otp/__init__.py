"""
OTP Issuance and Verification
=============================
Code generation and single-use code storage.
"""

from .models import OTPRecord
from .hashing import codes_match, hash_identifier, set_log_pepper
from .generator import CodeGenerator
from .base import OTPStore
from .in_memory import InMemoryOTPStore
from .redis_store import RedisOTPStore, ISSUE_SCRIPT, VERIFY_SCRIPT

__all__ = [
    # Models
    "OTPRecord",
    # Hashing
    "codes_match",
    "hash_identifier",
    "set_log_pepper",
    # Generator
    "CodeGenerator",
    # Stores
    "OTPStore",
    "InMemoryOTPStore",
    "RedisOTPStore",
    # Scripts
    "ISSUE_SCRIPT",
    "VERIFY_SCRIPT",
]
