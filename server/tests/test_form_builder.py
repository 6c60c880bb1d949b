"""
Tests for building upstream payloads from studio form state.
"""

from __future__ import annotations

from app.core.features import FeatureType
from app.services.form_builder import build_comic_payload, build_form
from conftest import make_form


class TestBuildForm:

    def test_upscale_sends_image_and_choices(self, sample_image):
        fields, files = build_form(make_form(FeatureType.UPSCALE, image=sample_image, scale="4"))
        assert fields == {"scale": "4", "version": "v1.4"}
        assert files["image"] == ("photo.png", sample_image.content, "image/png")

    def test_empty_values_are_omitted(self, sample_image):
        fields, _ = build_form(make_form(FeatureType.STYLE, image=sample_image, extra=""))
        assert fields == {"style": "anime"}

    def test_relight_file_wins_over_url(self, sample_image):
        state = make_form(FeatureType.IC_LIGHT, image=sample_image, image_url="https://example.com/a.jpg")
        fields, files = build_form(state)
        assert "image" in files
        assert "image_url" not in fields

    def test_relight_url_is_trimmed(self):
        fields, files = build_form(make_form(FeatureType.IC_LIGHT, image_url="  https://example.com/a.jpg  "))
        assert files == {}
        assert fields["image_url"] == "https://example.com/a.jpg"
        assert fields["light_source"] == "None"

    def test_replace_mode_sends_fg_and_bg(self, sample_image, background_image):
        state = make_form(FeatureType.REPLACE_BG, image=sample_image, background=background_image, mode="replace")
        fields, files = build_form(state)
        assert set(files) == {"fg", "bg"}
        assert fields["mode"] == "replace"
        assert fields["signTtl"] == "3600"

    def test_remove_mode_drops_bg(self, sample_image, background_image):
        state = make_form(FeatureType.REPLACE_BG, image=sample_image, background=background_image, mode="remove")
        _, files = build_form(state)
        assert set(files) == {"fg"}


class TestComicPayload:

    def test_defaults(self):
        assert build_comic_payload({"prompt": "A long day at sea"}) == {
            "prompt": "A long day at sea",
            "panels": 4,
            "style": "anime_color",
        }

    def test_panels_parsed(self):
        assert build_comic_payload({"prompt": "Space pirates", "panels": " 6 "})["panels"] == 6

    def test_invalid_panels_fall_back(self):
        assert build_comic_payload({"prompt": "Space pirates", "panels": "many"})["panels"] == 4

    def test_missing_prompt_forwarded_as_none(self):
        assert build_comic_payload({})["prompt"] is None
