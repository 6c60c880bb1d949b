"""
Tests for client-side form validation and upload checks.
"""

from __future__ import annotations

import pytest

from app.core.features import FEATURE_CONFIGS, FeatureType, get_feature, resolve_gateway_feature
from app.services.form_state import FormValidationError, read_upload
from app.services.validation import is_valid_dimension, rules_for, validate_form
from conftest import make_form, png_bytes


# ============================================================================
# TESTS: feature catalogue
# ============================================================================

class TestFeatureCatalogue:
    """Lookups in the static feature table."""

    @pytest.mark.parametrize(
        "gateway_id, feature",
        [
            ("upscale", FeatureType.UPSCALE),
            ("ic-light", FeatureType.IC_LIGHT),
            ("clarity", FeatureType.CLARITY),
            ("enhance", FeatureType.ENHANCE),
            ("beautify", FeatureType.AI_BEAUTIFY),
            ("replace-bg", FeatureType.REPLACE_BG),
            ("style", FeatureType.STYLE),
            ("comic", FeatureType.COMIC),
        ],
    )
    def test_gateway_ids_resolve(self, gateway_id, feature):
        assert resolve_gateway_feature(gateway_id) == feature

    def test_unknown_ids(self):
        assert resolve_gateway_feature("teleport") is None
        assert get_feature("teleport") is None

    def test_every_feature_has_config(self):
        assert set(FEATURE_CONFIGS) == set(FeatureType)

    def test_defaults_respect_allow_lists(self):
        for config in FEATURE_CONFIGS.values():
            for key, allowed in config.choices.items():
                if key in config.defaults:
                    assert config.defaults[key] in allowed, (config.name, key)


# ============================================================================
# TESTS: is_valid_dimension()
# ============================================================================

class TestDimensions:

    @pytest.mark.parametrize("value", ["256", "320", "768", "1024", "512.0"])
    def test_valid(self, value):
        assert is_valid_dimension(value)

    @pytest.mark.parametrize("value", ["300", "1088", "192", "abc", "", "nan", "320.5"])
    def test_invalid(self, value):
        assert not is_valid_dimension(value)

    def test_relight_rejects_bad_width(self, sample_image):
        state = make_form(FeatureType.IC_LIGHT, image=sample_image, width="300")
        with pytest.raises(FormValidationError, match="Width"):
            validate_form(state)

    def test_relight_accepts_good_dimensions(self, sample_image):
        state = make_form(FeatureType.IC_LIGHT, image=sample_image, width="320", height="768")
        validate_form(state)


# ============================================================================
# TESTS: validate_form()
# ============================================================================

class TestValidateForm:

    @pytest.mark.parametrize(
        "feature",
        [FeatureType.UPSCALE, FeatureType.CLARITY, FeatureType.ENHANCE, FeatureType.AI_BEAUTIFY, FeatureType.STYLE],
    )
    def test_image_required(self, feature):
        with pytest.raises(FormValidationError, match="upload an image"):
            validate_form(make_form(feature))

    def test_relight_needs_image_or_url(self):
        with pytest.raises(FormValidationError, match="image_url"):
            validate_form(make_form(FeatureType.IC_LIGHT))

    def test_relight_accepts_url_without_file(self):
        validate_form(make_form(FeatureType.IC_LIGHT, image_url="  https://example.com/face.jpg "))

    def test_replace_bg_needs_foreground(self, background_image):
        with pytest.raises(FormValidationError, match="foreground"):
            validate_form(make_form(FeatureType.REPLACE_BG, background=background_image))

    def test_replace_mode_needs_background(self, sample_image):
        state = make_form(FeatureType.REPLACE_BG, image=sample_image, mode="replace")
        with pytest.raises(FormValidationError, match="background image"):
            validate_form(state)

    def test_remove_mode_without_background(self, sample_image):
        validate_form(make_form(FeatureType.REPLACE_BG, image=sample_image, mode="remove"))

    def test_comic_prompt_too_short(self):
        with pytest.raises(FormValidationError, match="at least 5"):
            validate_form(make_form(FeatureType.COMIC, prompt=" abc  "))

    def test_comic_needs_no_image(self):
        validate_form(make_form(FeatureType.COMIC, prompt="A cat learns to fly"))

    def test_choice_outside_allow_list(self, sample_image):
        state = make_form(FeatureType.UPSCALE, image=sample_image, scale="8")
        with pytest.raises(FormValidationError, match="Invalid scale '8'"):
            validate_form(state)

    def test_enhance_model_allow_list(self, sample_image):
        validate_form(make_form(FeatureType.ENHANCE, image=sample_image, scale="6", model="cgi"))
        with pytest.raises(FormValidationError, match="model"):
            validate_form(make_form(FeatureType.ENHANCE, image=sample_image, model="turbo"))

    def test_common_rules_run_first(self):
        rules = rules_for(FeatureType.COMIC)
        assert rules[0].__name__ == "require_image"
        assert rules[-1].__name__ == "check_choices"


# ============================================================================
# TESTS: read_upload()
# ============================================================================

class TestReadUpload:

    def test_empty_file_input(self):
        assert read_upload("", b"") is None

    def test_valid_png(self, sample_png):
        upload = read_upload("photo.png", sample_png, "image/png")
        assert upload.content_type == "image/png"
        assert upload.data_url.startswith("data:image/png;base64,")

    def test_missing_content_type_detected(self, sample_png):
        upload = read_upload("photo", sample_png, None)
        assert upload.content_type == "image/png"

    def test_too_large(self):
        content = png_bytes()
        with pytest.raises(FormValidationError, match="smaller than 1MB"):
            read_upload("photo.png", content + b"\0" * (1024 * 1024), "image/png", max_bytes=1024 * 1024)

    def test_not_an_image(self):
        with pytest.raises(FormValidationError, match="not a valid image"):
            read_upload("notes.txt", b"plain text", "text/plain")
