"""
Shared fixtures for the studio and gateway tests.

No test talks to a real upstream: every outgoing call goes through an
``httpx.MockTransport`` that records the requests it receives.
"""

from __future__ import annotations

import io
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from PIL import Image

from app.core.config import Settings
from app.core.features import FeatureType
from app.services.form_state import FormState, UploadedImage

UPSTREAM_URL = "http://upstream.test/api"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: List[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            request.read()
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


def json_response(payload: Any, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)
    return handler


def request_json(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content.decode())


def png_bytes(size: tuple = (32, 32), color: str = "red") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_png() -> bytes:
    """Small valid PNG file."""
    return png_bytes()


@pytest.fixture
def sample_image(sample_png: bytes) -> UploadedImage:
    return UploadedImage(filename="photo.png", content=sample_png, content_type="image/png")


@pytest.fixture
def background_image() -> UploadedImage:
    return UploadedImage(filename="bg.png", content=png_bytes(color="blue"), content_type="image/png")


@pytest.fixture
def settings() -> Settings:
    return Settings(UPSTREAM_API_URL=UPSTREAM_URL, SUBMIT_MODE="direct", ALLOWED_ORIGINS="http://localhost:3000")


def make_form(
    feature: FeatureType,
    image: Optional[UploadedImage] = None,
    background: Optional[UploadedImage] = None,
    **values: str,
) -> FormState:
    """FormState with the feature defaults, overridden by ``values``."""
    state = FormState.with_defaults(feature, **values)
    state.image = image
    state.background = background
    return state
