"""
Health Check API Router
Readiness and liveness endpoints for kvgateway
"""

from fastapi import APIRouter, HTTPException, status

from .schemas import LivenessResponse, ReadinessResponse
from . import dependencies

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live", response_model=LivenessResponse, summary="Liveness check")
async def liveness_check():
    """The process is up and serving requests."""
    return LivenessResponse(alive=True)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    responses={
        200: {"description": "Routing components are initialized"},
        503: {"description": "Service is not ready"}
    }
)
async def readiness_check():
    """
    Ready once the proxy client and routers have been built.

    The placement service is not queried here; every read does that anyway.
    """
    settings = dependencies.get_active_settings()
    aggregator = dependencies._read_aggregator
    proxy_client = dependencies._proxy_client

    if settings is None or aggregator is None or proxy_client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Routing components not initialized"
        )

    return ReadinessResponse(
        ready=True,
        service_name=aggregator.service_name,
        fanout_strategy=aggregator.fanout.name,
        proxy=proxy_client.get_stats(),
    )
