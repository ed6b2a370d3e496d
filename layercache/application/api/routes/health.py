"""
Health Check Routes

- GET /health:          liveness, answers without touching Redis
- GET /health/detailed: both cache layers, breaker state and counters;
                        503 when the remote layer is unhealthy
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from layercache.application.api.dependencies import CacheManagerDep
from layercache.application.api.models import HealthResponse
from layercache.core.logging.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("", response_model=HealthResponse)
async def health_check():
    """Quick liveness check for load balancers."""
    return HealthResponse(status="healthy", timestamp=_now())


@router.get("/detailed", response_model=HealthResponse)
async def detailed_health_check(cache: CacheManagerDep):
    """
    Readiness check covering the local layer, the remote layer and the breaker.

    A degraded remote layer still answers 200: the cache keeps serving from
    the local layer. Only an unreachable remote with an open breaker is 503.
    """
    health = await cache.health_check()
    remote = health.get("remote", {})
    breaker = remote.get("circuit_breaker", {})

    overall = health["status"]
    if overall != "healthy" and breaker.get("state") == "open":
        overall = "unhealthy"

    body = HealthResponse(
        status=overall,
        timestamp=_now(),
        components={
            "local": health["local"],
            "remote": remote,
            "stats": health["stats"],
            "pending_warmup": health["pending_warmup"],
        },
    )

    if overall == "unhealthy":
        logger.warning("Detailed health check failed", remote_status=remote.get("status"))
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
