"""
Tests for interpreting upstream result envelopes.
"""

from __future__ import annotations

from app.models import Envelope
from app.services.result_extraction import (
    EMPTY_RESULT_MESSAGE,
    GENERIC_ERROR_MESSAGE,
    OutcomeState,
    extract_image_urls,
    interpret_result,
)


def envelope(**payload) -> Envelope:
    return Envelope.model_validate(payload)


# ============================================================================
# TESTS: extract_image_urls()
# ============================================================================

class TestExtractImageUrls:

    def test_presigned_url_preferred(self):
        env = envelope(data={"url": "https://a/raw.jpg", "presigned_url": "https://a/signed.jpg"})
        assert extract_image_urls(env) == ["https://a/signed.jpg"]

    def test_plain_url(self):
        assert extract_image_urls(envelope(data={"url": "https://a/raw.jpg"})) == ["https://a/raw.jpg"]

    def test_outputs_skip_missing_urls(self):
        env = envelope(data={"outputs": [{"url": "https://a/1.png"}, {"index": 1}, {"url": "https://a/3.png"}]})
        assert extract_image_urls(env) == ["https://a/1.png", "https://a/3.png"]

    def test_pages_use_presigned_when_page_url_missing(self):
        env = envelope(pages=[
            {"page_index": 0, "page_url": "https://a/p0.png"},
            {"page_index": 1, "presigned_url": "https://a/p1.png"},
        ])
        assert extract_image_urls(env) == ["https://a/p0.png", "https://a/p1.png"]

    def test_pages_take_precedence(self):
        env = envelope(
            pages=[{"page_url": "https://a/page.png"}],
            page_url="https://a/single.png",
            data={"url": "https://a/data.png"},
        )
        assert extract_image_urls(env) == ["https://a/page.png"]

    def test_page_url_before_data(self):
        env = envelope(page_url="https://a/single.png", data={"url": "https://a/data.png"})
        assert extract_image_urls(env) == ["https://a/single.png"]

    def test_empty_pages_fall_through(self):
        env = envelope(pages=[], data={"outputs": [{"url": "https://a/1.png"}]})
        assert extract_image_urls(env) == ["https://a/1.png"]

    def test_nothing_usable(self):
        assert extract_image_urls(envelope(data={"key": "results/1.png"})) == []


# ============================================================================
# TESTS: interpret_result()
# ============================================================================

class TestInterpretResult:

    def test_success_with_request_id(self):
        outcome = interpret_result(envelope(request_id="r1", data={"url": "https://a/x.jpg"}))
        assert outcome.state == OutcomeState.SUCCESS
        assert outcome.image_urls == ["https://a/x.jpg"]
        assert outcome.message == "Completed 1 image · Request: r1"

    def test_success_counts_images(self):
        env = envelope(data={"outputs": [{"url": "https://a/1.png"}, {"url": "https://a/2.png"}]})
        assert interpret_result(env).message == "Completed 2 images"

    def test_empty_success(self):
        outcome = interpret_result(envelope(status="success", request_id="r2", data={}))
        assert outcome.state == OutcomeState.EMPTY
        assert outcome.message == EMPTY_RESULT_MESSAGE
        assert outcome.image_urls == []

    def test_error_object(self):
        outcome = interpret_result(envelope(status="error", error={"message": "Face not found", "code": "NO_FACE"}))
        assert outcome.state == OutcomeState.ERROR
        assert outcome.message == "Face not found"

    def test_error_string(self):
        assert interpret_result(envelope(status="error", error="Quota exceeded")).message == "Quota exceeded"

    def test_error_without_message(self):
        assert interpret_result(envelope(status="error")).message == GENERIC_ERROR_MESSAGE

    def test_numeric_code_and_request_id(self):
        env = envelope(status="error", request_id=7, error={"message": "Face not found", "code": 422})
        assert env.error.code == "422"
        outcome = interpret_result(env)
        assert outcome.message == "Face not found"
        assert outcome.request_id == "7"

    def test_count_ignores_outputs_without_url(self):
        env = envelope(data={"outputs": [{"url": "https://a/1.png"}, {"index": 1}]})
        assert interpret_result(env).message == "Completed 1 image"
