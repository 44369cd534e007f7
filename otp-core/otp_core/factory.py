"""
Service Factory
===============
Builds an OTPService for the configured backend.
"""

import time
from typing import Callable, Optional
import structlog
import redis.asyncio as redis

from .config import OTPCoreConfig
from .otp.generator import CodeGenerator
from .otp.hashing import log_pepper_configured, set_log_pepper
from .otp.in_memory import InMemoryOTPStore
from .otp.redis_store import RedisOTPStore
from .rate_limit.in_memory import InMemoryAttemptLimiter
from .rate_limit.redis_limiter import RedisAttemptLimiter
from .service import OTPService

logger = structlog.get_logger(__name__)


def create_redis_client(config: OTPCoreConfig) -> redis.Redis:
    """Create an async Redis client whose calls are bounded by ``store_timeout``."""
    return redis.from_url(
        config.redis_url,
        decode_responses=True,
        socket_timeout=config.store_timeout,
        socket_connect_timeout=config.store_timeout,
    )


def create_service(
    config: Optional[OTPCoreConfig] = None,
    redis_client=None,
    clock: Callable[[], float] = time.time,
) -> OTPService:
    """
    Build an OTP service.

    Args:
        config: Settings (environment defaults when omitted)
        redis_client: Existing async Redis client; implies the Redis backend
            and stays owned by the caller
        clock: Source of the current Unix time

    Returns:
        OTPService wired to the in-process or Redis backend
    """
    config = (config or OTPCoreConfig()).validate()
    if config.log_pepper:
        set_log_pepper(config.log_pepper)
    elif not log_pepper_configured():
        logger.warning(
            "otp_log_pepper_unset",
            hint="set OTP_LOG_PEPPER so identifier hashes in logs cannot be reversed",
        )
    generator = CodeGenerator(width=config.code_width)

    if redis_client is None and config.backend == "memory":
        service = OTPService(
            store=InMemoryOTPStore(
                generator=generator,
                ttl=config.code_ttl,
                sweep_interval=config.effective_sweep_interval,
                stripes=config.lock_stripes,
                clock=clock,
            ),
            limiter=InMemoryAttemptLimiter(
                cap=config.rate_limit_cap,
                window=config.rate_limit_window,
                sweep_interval=config.sweep_interval,
                stripes=config.lock_stripes,
                clock=clock,
            ),
            backend="memory",
        )
    else:
        owns_client = redis_client is None
        if owns_client:
            redis_client = create_redis_client(config)
        service = OTPService(
            store=RedisOTPStore(
                redis_client,
                generator=generator,
                ttl=config.code_ttl,
                key_prefix=config.key_prefix,
                timeout=config.store_timeout,
                clock=clock,
            ),
            limiter=RedisAttemptLimiter(
                redis_client,
                cap=config.rate_limit_cap,
                window=config.rate_limit_window,
                key_prefix=config.key_prefix,
                timeout=config.store_timeout,
                clock=clock,
            ),
            backend="redis",
            redis_client=redis_client,
            owns_redis_client=owns_client,
        )

    logger.info(
        "otp_service_created",
        backend=service.backend,
        code_width=config.code_width,
        code_ttl=config.code_ttl,
        rate_limit_cap=config.rate_limit_cap,
        rate_limit_window=config.rate_limit_window,
    )
    return service
