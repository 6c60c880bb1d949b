"""
System endpoints for health checks.

The feature catalogue itself is served by the gateway router at
``/api/features``.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from ...models import HealthResponse

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns:
        HealthResponse with the upstream URL and how submissions are routed
    """
    settings = request.app.state.settings
    sessions = request.app.state.studio_sessions
    return HealthResponse(
        status="busy" if sessions.any_processing else "healthy",
        service="studio",
        upstream_api_url=settings.upstream_api_url,
        submit_mode=settings.submit_mode,
    )
