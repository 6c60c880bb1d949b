"""
HTTP middleware installed on both the gateway and the studio application.

Starlette runs middleware in reverse order of registration, so callers add
request logging first and CORS last.
"""

from __future__ import annotations

import logging
import time
from typing import Sequence

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

logger = logging.getLogger(__name__)

PREFLIGHT_MAX_AGE = 3600


def add_cors_middleware(app: FastAPI, origins: Sequence[str]) -> None:
    """Allow the configured browser origins; preflight answers are cached for an hour."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["content-disposition"],
        max_age=PREFLIGHT_MAX_AGE,
    )


def add_request_logging_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_requests(request: Request, call_next) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"➡️ [HTTP] {request.method} {request.url.path} -> {response.status_code} "
            f"({elapsed_ms:.0f} ms)"
        )
        return response


def add_security_middleware(app: FastAPI) -> None:
    """Drop the ``server`` header from every response."""
    @app.middleware("http")
    async def strip_server_header(request: Request, call_next) -> Response:
        response = await call_next(request)
        if "server" in response.headers:
            del response.headers["server"]
        return response
