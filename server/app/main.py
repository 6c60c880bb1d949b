from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from api_gateway.middleware import (
    add_cors_middleware,
    add_request_logging_middleware,
    add_security_middleware,
)
from api_gateway.router import create_router as create_gateway_router
from shared.clients.service_client import ServiceClient

from .api.endpoints import studio, system
from .core.config import Settings, settings as default_settings
from .services.studio_state import StudioSession, StudioSessionStore
from .services.submission import FeatureSubmitter

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Create the studio application.

    The studio serves the feature pages and also mounts the gateway router, so
    one process covers both. Submissions go to the upstream directly or through
    the gateway depending on ``SUBMIT_MODE``.

    Args:
        settings: Settings to use (defaults to environment-loaded settings)
        transport: Optional httpx transport for every outgoing client (tests)
    """
    settings = settings or default_settings

    upstream_client = ServiceClient(
        settings.upstream_api_url, timeout=settings.upstream_timeout, transport=transport
    )
    if settings.submit_mode == "gateway":
        submit_client = ServiceClient(
            settings.gateway_url, timeout=settings.upstream_timeout, transport=transport
        )
    else:
        submit_client = upstream_client
    download_client = ServiceClient(
        settings.upstream_api_url, timeout=settings.download_timeout, transport=transport
    )
    clients = {id(c): c for c in (upstream_client, submit_client, download_client)}.values()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Starting Feature Studio")
        logger.info(f"🌐 Upstream API: {settings.upstream_api_url} (submit mode: {settings.submit_mode})")
        yield
        for client in clients:
            await client.close()
        logger.info("🛑 Shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description=settings.description,
        version=settings.version,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.download_client = download_client
    app.state.studio_sessions = StudioSessionStore(
        lambda: StudioSession(FeatureSubmitter(submit_client, mode=settings.submit_mode))
    )

    cors_origins = settings.cors_origins
    if settings.debug:
        for port in (3000, 5173, 8000):
            origin = f"http://localhost:{port}"
            if origin not in cors_origins:
                cors_origins.append(origin)
    logger.info(f"🌐 CORS configured for origins: {cors_origins}")

    add_request_logging_middleware(app)
    add_security_middleware(app)
    add_cors_middleware(app, cors_origins)

    app.include_router(studio.router)
    app.include_router(system.router)
    app.include_router(create_gateway_router(upstream_client))

    logger.info("✅ Routers registered:")
    logger.info("   - Studio: /studio, /studio/submit, /studio/status, /studio/download")
    logger.info("   - System: /api/system/health")
    logger.info("   - Gateway: /api/process, /api/features, /api/health")

    return app
