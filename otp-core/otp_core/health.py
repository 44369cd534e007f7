"""
Health Checks
=============
Component status for the OTP service backends.
"""

import time
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel
import structlog

logger = structlog.get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    status: str
    latency_ms: Optional[float] = None
    error: Optional[str] = None


class HealthReport(BaseModel):
    status: HealthStatus
    backend: str
    components: Dict[str, ComponentHealth]
    timestamp: float


def check_memory() -> ComponentHealth:
    """In-process state is always reachable."""
    return ComponentHealth(status="in_process", latency_ms=0.0)


async def check_redis(redis_client) -> ComponentHealth:
    """Check Redis connectivity and latency."""
    try:
        start = time.time()
        await redis_client.ping()
        latency = (time.time() - start) * 1000
        return ComponentHealth(status="connected", latency_ms=round(latency, 2))
    except Exception as e:
        logger.error("Redis health check failed", error=str(e))
        return ComponentHealth(status="error", error=str(e))
