"""
OTP Core Configuration
======================
Tunable parameters for code issuance, verification and rate limiting.
"""

import os
from dataclasses import dataclass

BACKENDS = ("memory", "redis")


@dataclass
class OTPCoreConfig:
    """Configuration for the OTP service and its backends."""
    code_width: int = int(os.environ.get("OTP_CODE_WIDTH", "6"))
    code_ttl: float = float(os.environ.get("OTP_CODE_TTL_SECONDS", "120"))  # 2 minutes
    rate_limit_window: float = float(
        os.environ.get("OTP_RATE_LIMIT_WINDOW_SECONDS", "600")
    )  # 10 minutes
    rate_limit_cap: int = int(os.environ.get("OTP_RATE_LIMIT_CAP", "3"))
    sweep_interval: float = float(os.environ.get("OTP_SWEEP_INTERVAL_SECONDS", "60"))
    lock_stripes: int = int(os.environ.get("OTP_LOCK_STRIPES", "64"))
    backend: str = os.environ.get("OTP_BACKEND", "memory")
    redis_url: str = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
    store_timeout: float = float(os.environ.get("OTP_STORE_TIMEOUT_SECONDS", "2.0"))
    key_prefix: str = os.environ.get("OTP_KEY_PREFIX", "otp")
    log_pepper: str = os.environ.get("OTP_LOG_PEPPER", "")

    @property
    def effective_sweep_interval(self) -> float:
        """Sweep interval bounded by the code TTL."""
        return min(self.sweep_interval, self.code_ttl)

    def validate(self) -> "OTPCoreConfig":
        """Raise ValueError on settings the backends cannot honour."""
        if self.code_width < 1:
            raise ValueError("code_width must be at least 1")
        for name in ("code_ttl", "rate_limit_window", "sweep_interval", "store_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.rate_limit_cap < 1:
            raise ValueError("rate_limit_cap must be at least 1")
        if self.lock_stripes < 1:
            raise ValueError("lock_stripes must be at least 1")
        if self.backend not in BACKENDS:
            raise ValueError(
                f"Unknown backend '{self.backend}', expected one of {BACKENDS}"
            )
        return self
