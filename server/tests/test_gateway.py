"""
Tests for the API gateway routes.

The gateway app is built with a recording MockTransport standing in for the
upstream processing API.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from api_gateway.main import create_app
from api_gateway.router import build_error_envelope
from conftest import UPSTREAM_URL, RecordingTransport, json_response, request_json


@pytest.fixture
def make_client(settings):
    def factory(handler):
        transport = RecordingTransport(handler)
        return TestClient(create_app(settings, transport=transport)), transport
    return factory


# ============================================================================
# TESTS: routing
# ============================================================================

class TestFeatureRouting:

    @pytest.mark.parametrize(
        "feature, path",
        [
            ("upscale", "/upscale"),
            ("ic-light", "/portraits/ic-light"),
            ("clarity", "/clarity"),
            ("enhance", "/enhance"),
            ("beautify", "/ai-beautify"),
            ("replace-bg", "/replace-bg"),
            ("style", "/style"),
        ],
    )
    def test_header_maps_to_endpoint(self, make_client, sample_png, feature, path):
        client, transport = make_client(json_response({"status": "success", "data": {"url": "https://cdn/x.jpg"}}))
        response = client.post(
            "/api/process",
            headers={"x-feature-type": feature},
            files={"image": ("photo.png", sample_png, "image/png")},
            data={"scale": "2"},
        )

        assert response.status_code == 200
        request = transport.requests[0]
        assert str(request.url) == f"{UPSTREAM_URL}{path}"
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert sample_png in request.content

    def test_form_field_used_without_header(self, make_client):
        client, transport = make_client(json_response({"status": "success"}))
        client.post("/api/process", data={"feature": "clarity", "scale": "4"})
        assert transport.requests[0].url.path == "/api/clarity"

    def test_defaults_to_upscale(self, make_client):
        client, transport = make_client(json_response({"status": "success"}))
        client.post("/api/process", data={"scale": "2"})
        assert transport.requests[0].url.path == "/api/upscale"

    def test_unknown_feature_rejected(self, make_client):
        client, transport = make_client(json_response({"status": "success"}))
        response = client.post("/api/process", headers={"x-feature-type": "teleport"}, data={"a": "b"})

        assert response.status_code == 400
        assert response.json() == {
            "status": "error",
            "error": {"message": "Unknown feature", "code": "VALIDATION_ERROR"},
        }
        assert transport.requests == []

    def test_comic_converted_to_json(self, make_client):
        client, transport = make_client(json_response({"status": "success", "page_url": "https://cdn/p.png"}))
        client.post("/api/process", headers={"x-feature-type": "comic"}, data={"prompt": "A dragon opens a bakery"})

        request = transport.requests[0]
        assert request.url.path == "/api/comic/generate"
        assert request_json(request) == {"prompt": "A dragon opens a bakery", "panels": 4, "style": "anime_color"}

    def test_comic_json_request_body(self, make_client):
        client, transport = make_client(json_response({"status": "success"}))
        client.post(
            "/api/process",
            headers={"x-feature-type": "comic"},
            json={"prompt": "A dragon opens a bakery", "panels": "3", "style": ""},
        )
        assert request_json(transport.requests[0]) == {
            "prompt": "A dragon opens a bakery",
            "panels": 3,
            "style": "anime_color",
        }


# ============================================================================
# TESTS: response envelope
# ============================================================================

class TestResponseEnvelope:

    def test_success_fields_passed_through(self, make_client):
        upstream = {
            "status": "success",
            "request_id": "r-1",
            "data": {"outputs": [{"url": "https://cdn/1.png", "index": 0}]},
            "meta": {"model": "x"},
            "pages": [{"page_index": 0, "page_url": "https://cdn/p0.png"}],
            "timestamp": "2024-01-01T00:00:00Z",
            "internal": "dropped",
        }
        client, _ = make_client(json_response(upstream))
        body = client.post("/api/process", headers={"x-feature-type": "enhance"}, data={}).json()

        assert body == {key: value for key, value in upstream.items() if key != "internal"}

    def test_missing_timestamp_filled_in(self, make_client):
        client, _ = make_client(json_response({"status": "success", "data": {"url": "https://cdn/x.jpg"}}))
        body = client.post("/api/process", data={}).json()
        assert body["timestamp"].endswith("Z")
        assert "request_id" not in body

    def test_upstream_status_mirrored(self, make_client):
        client, _ = make_client(json_response(
            {"status": "error", "request_id": "r-2", "error": {"message": "Too large", "code": "FILE_TOO_LARGE"}},
            status_code=413,
        ))
        response = client.post("/api/process", data={})

        assert response.status_code == 413
        body = response.json()
        assert body["error"] == {"message": "Too large", "code": "FILE_TOO_LARGE"}
        assert body["request_id"] == "r-2"

    def test_string_error_rewrapped(self):
        envelope = build_error_envelope({"error": "Model unavailable", "timestamp": "t"})
        assert envelope == {
            "status": "error",
            "error": {"message": "Model unavailable", "code": "PROCESSING_ERROR"},
            "timestamp": "t",
        }

    def test_missing_error_message(self):
        assert build_error_envelope({})["error"]["message"] == "Processing failed"

    def test_transport_failure_is_internal_error(self, make_client):
        def refuse(request):
            raise httpx.ConnectError("upstream down", request=request)

        client, _ = make_client(refuse)
        response = client.post("/api/process", data={})

        assert response.status_code == 500
        body = response.json()
        assert body["status"] == "error"
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert body["timestamp"].endswith("Z")

    def test_non_object_upstream_body(self, make_client):
        client, _ = make_client(json_response(["not", "an", "object"]))
        response = client.post("/api/process", data={})
        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"


# ============================================================================
# TESTS: catalogue and health
# ============================================================================

class TestCatalogue:

    def test_health(self, make_client):
        client, _ = make_client(json_response({}))
        assert client.get("/api/health").json() == {"status": "healthy", "service": "api_gateway"}

    def test_features(self, make_client):
        client, _ = make_client(json_response({}))
        body = client.get("/api/features").json()

        assert body["default"] == "upscale"
        by_id = {feature["id"]: feature for feature in body["features"]}
        assert by_id["replace-bg"]["choices"]["mode"] == ["remove", "replace"]
        assert by_id["comic/generate"]["gateway_id"] == "comic"
        assert len(by_id) == 8
