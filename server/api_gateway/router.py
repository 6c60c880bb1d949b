"""
API Gateway routing logic.

This module maps a feature discriminator to its upstream endpoint, reshapes
the request body where the upstream expects JSON, and re-wraps whatever the
upstream answers into the fixed response envelope.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, Mapping, Optional

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.core.features import (
    DEFAULT_FEATURE,
    FEATURE_CONFIGS,
    FeatureConfig,
    resolve_gateway_feature,
)
from app.models import ErrorInfo, FeatureInfo, utc_timestamp
from app.services.form_builder import build_comic_payload
from shared.clients.service_client import ServiceClient

logger = logging.getLogger(__name__)

FEATURE_HEADER = "x-feature-type"
FEATURE_FIELD = "feature"

VALIDATION_ERROR = "VALIDATION_ERROR"
PROCESSING_ERROR = "PROCESSING_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"


def _drop_none(envelope: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in envelope.items() if value is not None}


def _error_response(message: str, code: str, status_code: int, **extra: Any) -> JSONResponse:
    content = _drop_none({
        "status": "error",
        **extra,
        "error": ErrorInfo(message=message, code=code).model_dump(exclude_none=True),
    })
    return JSONResponse(status_code=status_code, content=content)


def build_error_envelope(result: Dict[str, Any]) -> Dict[str, Any]:
    """
    Re-wrap an upstream error body.

    The upstream ``error`` may be a structured ``{message, code}`` object or a
    bare string.
    """
    upstream_error = result.get("error")
    message: Optional[str] = None
    code: Optional[str] = None
    if isinstance(upstream_error, dict):
        message = upstream_error.get("message")
        code = upstream_error.get("code")
    elif isinstance(upstream_error, str):
        message = upstream_error

    return _drop_none({
        "status": "error",
        "request_id": result.get("request_id"),
        "error": {
            "message": message or "Processing failed",
            "code": code or PROCESSING_ERROR,
        },
        "timestamp": result.get("timestamp") or utc_timestamp(),
    })


def build_success_envelope(result: Dict[str, Any]) -> Dict[str, Any]:
    return _drop_none({
        "status": "success",
        "request_id": result.get("request_id"),
        "data": result.get("data"),
        "meta": result.get("meta"),
        "page_url": result.get("page_url"),
        "pages": result.get("pages"),
        "timestamp": result.get("timestamp") or utc_timestamp(),
    })


async def _read_fields(request: Request) -> Mapping[str, Any]:
    """Submitted fields from a multipart/urlencoded form or a JSON object body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        payload = await request.json()
        if not isinstance(payload, dict):
            raise ValueError("JSON request body must be an object")
        return payload
    return await request.form()


async def _resolve_feature_id(request: Request) -> str:
    """Feature discriminator from the header, else the form field, else the default."""
    header_value = request.headers.get(FEATURE_HEADER)
    if header_value:
        return header_value.strip()

    fields = await _read_fields(request)
    field_value = fields.get(FEATURE_FIELD)
    if isinstance(field_value, str) and field_value.strip():
        return field_value.strip()
    return FEATURE_CONFIGS[DEFAULT_FEATURE].gateway_id


async def _forward_to_upstream(
    client: ServiceClient,
    request: Request,
    body: bytes,
    config: FeatureConfig,
) -> httpx.Response:
    """
    Call the upstream endpoint of a feature.

    JSON features get their form fields converted into a JSON body; every
    other feature gets the incoming multipart body forwarded byte for byte.
    """
    if config.json_body:
        fields = await _read_fields(request)
        payload = build_comic_payload(fields)
        return await client.post(config.endpoint, json=payload)

    headers: Dict[str, str] = {}
    content_type = request.headers.get("content-type")
    if content_type:
        headers["content-type"] = content_type
    return await client.post(config.endpoint, content=body, headers=headers)


def feature_catalogue() -> Dict[str, Any]:
    features = [
        FeatureInfo(
            id=feature.value,
            name=config.name,
            label=config.label,
            description=config.description,
            endpoint=config.endpoint,
            gateway_id=config.gateway_id,
            inputs=list(config.inputs),
            defaults=dict(config.defaults),
            choices={key: list(values) for key, values in config.choices.items()},
            estimated_time=config.estimated_time,
        ).model_dump()
        for feature, config in FEATURE_CONFIGS.items()
    ]
    return {"features": features, "default": DEFAULT_FEATURE.value}


def create_router(client: ServiceClient) -> APIRouter:
    """
    Create API Gateway router with all endpoints.

    Args:
        client: Upstream service client (owned and closed by the application)

    Returns:
        Configured APIRouter instance
    """
    router = APIRouter(prefix="/api", tags=["gateway"])

    @router.get("/health")
    async def health_check() -> Dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "service": "api_gateway"}

    @router.get("/features")
    async def list_features() -> Dict[str, Any]:
        """Feature catalogue (inputs, defaults, allow-lists, endpoints)."""
        return feature_catalogue()

    @router.post("/process")
    async def process(request: Request) -> JSONResponse:
        """
        Forward one feature request to the upstream service.

        Unknown features are rejected with 400 before anything is sent. Upstream
        errors keep their HTTP status; local failures become 500. Nothing is
        retried.
        """
        try:
            # Cache the raw body first so the form can still be parsed afterwards
            body = await request.body()
            feature_id = await _resolve_feature_id(request)
            feature = resolve_gateway_feature(feature_id)
            if feature is None:
                logger.warning(f"⚠️ [API Gateway] Unknown feature '{feature_id}'")
                return _error_response("Unknown feature", VALIDATION_ERROR, 400)

            config = FEATURE_CONFIGS[feature]
            logger.info(
                f"🔄 [API Gateway] Calling API endpoint: {client.service_url}{config.endpoint}"
            )

            response = await _forward_to_upstream(client, request, body, config)
            result = response.json()
            if not isinstance(result, dict):
                raise ValueError(f"Unexpected upstream response type: {type(result).__name__}")
            logger.debug(f"📦 [API Gateway] API response: {result}")

            if response.is_error:
                logger.error(
                    f"❌ [API Gateway] {config.endpoint} returned HTTP {response.status_code}"
                )
                return JSONResponse(
                    status_code=response.status_code,
                    content=build_error_envelope(result),
                )

            return JSONResponse(content=build_success_envelope(result))

        except Exception as e:
            logger.error(f"❌ [API Gateway] Route handler error: {traceback.format_exc()}")
            return _error_response(
                str(e) or "Internal server error",
                INTERNAL_ERROR,
                500,
                timestamp=utc_timestamp(),
            )

    return router
