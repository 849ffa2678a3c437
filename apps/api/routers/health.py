"""Health check router: liveness + readiness.

Readiness runs one cheap query against the expenses table with a short
timeout, so a hung Supabase connection shows up as "timeout" instead of
stalling the probe.
"""

import asyncio

import structlog
from fastapi import APIRouter

from apps.api.core.auth import get_service_client
from apps.api.core.config import settings

router = APIRouter(tags=["health"])
logger = structlog.get_logger()

STORAGE_TIMEOUT_SECONDS = 2


@router.get("/health")
async def health_liveness():
    """Liveness probe. Returns 200 if the API process is running.

    This is the fast probe. Kubernetes/load balancers should use this.
    """
    return {"status": "healthy", "service": "api"}


def _ping_storage() -> bool:
    client = get_service_client(settings)
    client.table(settings.EXPENSES_TABLE).select("id").limit(1).execute()
    return True


@router.get("/health/ready")
async def health_readiness():
    """Readiness probe. Checks that the expenses table is reachable."""
    status = {
        "status": "healthy",
        "services": {
            "api": "up",
            "storage": "unknown",
        },
    }

    if settings is None or not settings.SUPABASE_SERVICE_KEY:
        status["services"]["storage"] = "unconfigured"
        status["status"] = "degraded"
        return status

    try:
        await asyncio.wait_for(
            asyncio.to_thread(_ping_storage),
            timeout=STORAGE_TIMEOUT_SECONDS,
        )
        status["services"]["storage"] = "up"
    except asyncio.TimeoutError:
        status["services"]["storage"] = "timeout"
        status["status"] = "degraded"
        logger.warning("storage_health_timeout", timeout_s=STORAGE_TIMEOUT_SECONDS)
    except Exception as e:
        status["services"]["storage"] = "down"
        status["status"] = "degraded"
        logger.warning("storage_health_failed", error=str(e))

    return status
