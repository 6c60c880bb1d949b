"""
API Gateway - standalone entry point.

This module creates the FastAPI application exposing only the gateway routes,
with CORS middleware and request logging. The studio app mounts the same
router, so a separate gateway deployment is optional.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from app.core.config import Settings, settings as default_settings
from shared.clients.service_client import ServiceClient

from .middleware import (
    add_cors_middleware,
    add_request_logging_middleware,
    add_security_middleware,
)
from .router import create_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Create FastAPI app for API Gateway.

    Args:
        settings: Settings to use (defaults to environment-loaded settings)
        transport: Optional httpx transport for the upstream client (tests)

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or default_settings
    upstream_client = ServiceClient(
        settings.upstream_api_url,
        timeout=settings.upstream_timeout,
        transport=transport,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"🚀 [API Gateway] Forwarding to upstream {settings.upstream_api_url}")
        yield
        await upstream_client.close()
        logger.info("🛑 [API Gateway] Shutdown complete")

    app = FastAPI(
        title=f"{settings.app_name} API Gateway",
        description="Gateway forwarding feature requests to the upstream processing API",
        version=settings.version,
        lifespan=lifespan,
    )

    app.include_router(create_router(upstream_client))

    allowed_origins = settings.cors_origins
    logger.info(f"🌐 [API Gateway] CORS configured with allowed origins: {allowed_origins}")

    # Order matters - last added runs first
    add_request_logging_middleware(app)
    add_security_middleware(app)
    add_cors_middleware(app, allowed_origins)

    return app


app = create_app()
