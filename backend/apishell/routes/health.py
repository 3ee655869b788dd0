"""
apishell: Health Check Route
============================

What:  Liveness endpoint for load balancer and container probes.
How:   Reports process uptime, version and the environment of the app that
       serves it; there are no downstream dependencies to probe.
"""

import time

from fastapi import APIRouter, Request

from apishell import __version__
from apishell.schemas.health import HealthResponse

router = APIRouter(tags=["Health"])

# Module-level: set once when the module loads
_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(request: Request) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=request.app.state.settings.environment,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
