"""
Storefront API — Health, Root and Test Routes
===============================================

GET /health reports document store connectivity (ping command) and whether
the payment and image host credentials are configured.

Status levels:
    healthy:   database reachable, all integrations configured (HTTP 200)
    degraded:  database reachable, an integration unconfigured (HTTP 200)
    unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response

from storefront import __version__
from storefront.database import ping
from storefront.dependencies import Services, get_services
from storefront.schemas.common import HealthResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/api", response_model=MessageResponse, summary="API greeting")
async def api_root() -> MessageResponse:
    return MessageResponse(message="Hello from the API! we are getting started")


@router.get("/api/v1/test", response_model=MessageResponse, summary="Test route")
async def test_route() -> MessageResponse:
    return MessageResponse(message="test route is working")


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    response: Response,
    services: Services = Depends(get_services),
) -> HealthResponse:
    overall = "healthy"

    db_status = "connected"
    if services.database is None or not await ping(services.database):
        db_status = "disconnected"
        overall = "unhealthy"

    payments = "configured" if services.payment_service.configured else "unconfigured"
    images = "configured" if services.image_service.enabled else "unconfigured"
    if overall == "healthy" and "unconfigured" in (payments, images):
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503
        logger.warning("Health check: database unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        payments=payments,
        images=images,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
