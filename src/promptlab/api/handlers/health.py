"""Health check endpoint handler."""

import asyncio
import logging
import time
from datetime import datetime, timezone

import httpx
from fastapi import APIRouter, Response

from promptlab import __version__
from promptlab.api.deps import SettingsDep
from promptlab.config import Settings
from promptlab.models.health import ComponentHealth, HealthResponse, HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter()

# Thresholds for health status determination
LATENCY_DEGRADED_MS = 2000  # Above this is considered degraded
HEALTH_CHECK_TIMEOUT_SECONDS = 5  # Maximum time for health check


async def check_local_inference_health(settings: Settings) -> ComponentHealth:
    """Check that the local inference server answers its model listing.

    An absent local server only degrades the service, since every cloud
    provider keeps working without it.

    Args:
        settings: Application settings.

    Returns:
        ComponentHealth for the local inference server.
    """
    if not settings.health.local_inference_check_enabled:
        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Check disabled",
        )

    tags_url = settings.build_registry().ollama_tags_url

    try:
        start_time = time.perf_counter()

        async with httpx.AsyncClient(timeout=settings.health.timeout_seconds) as client:
            response = await client.get(tags_url)

        latency_ms = int((time.perf_counter() - start_time) * 1000)

        if response.status_code == 200:
            if latency_ms > LATENCY_DEGRADED_MS:
                return ComponentHealth(
                    status=HealthStatus.DEGRADED,
                    latency_ms=latency_ms,
                    message="High latency detected",
                )
            return ComponentHealth(
                status=HealthStatus.HEALTHY,
                latency_ms=latency_ms,
            )
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            error=f"Unexpected status code: {response.status_code}",
        )

    except httpx.TimeoutException:
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            error="Connection timeout",
        )
    except httpx.ConnectError as e:
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            error=f"Connection failed: {str(e)}",
        )
    except Exception as e:
        logger.exception("Unexpected error during local inference health check")
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            error=f"Unexpected error: {type(e).__name__}",
        )


def check_credentials_health(settings: Settings) -> ComponentHealth:
    """Report how many cloud providers have a server-side key, never the keys."""
    configured = sorted(provider.value for provider in settings.providers.credentials())

    if not configured:
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            message="No provider keys configured; requests must supply their own",
        )
    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        message=f"Keys configured for: {', '.join(configured)}",
    )


def determine_overall_status(checks: dict[str, ComponentHealth]) -> HealthStatus:
    """Determine overall health status from component checks.

    Args:
        checks: Dictionary of component health results.

    Returns:
        Overall health status.
    """
    if not checks:
        return HealthStatus.HEALTHY

    statuses = [check.status for check in checks.values()]

    if any(s == HealthStatus.UNHEALTHY for s in statuses):
        return HealthStatus.UNHEALTHY
    elif any(s == HealthStatus.DEGRADED for s in statuses):
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: SettingsDep, response: Response) -> HealthResponse:
    """Health check endpoint.

    - HTTP 200: Service is healthy or degraded
    - HTTP 503: Service is unhealthy
    """
    try:
        local_check = await asyncio.wait_for(
            check_local_inference_health(settings),
            timeout=HEALTH_CHECK_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        local_check = ComponentHealth(
            status=HealthStatus.DEGRADED,
            error="Health check timeout",
        )

    checks = {
        "local_inference": local_check,
        "credentials": check_credentials_health(settings),
    }
    overall_status = determine_overall_status(checks)

    if overall_status == HealthStatus.UNHEALTHY:
        response.status_code = 503

    return HealthResponse(
        status=overall_status,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> dict:
    """Liveness probe - the process is up and serving requests."""
    return {"status": "alive"}


@router.get("/health/ready", response_model=HealthResponse)
async def readiness_check(settings: SettingsDep, response: Response) -> HealthResponse:
    """Readiness probe - same checks as the main health endpoint."""
    return await health_check(settings, response)
