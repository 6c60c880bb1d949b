"""
Static feature catalogue.

Each selectable image-processing feature is described once here: the form
inputs it accepts, their defaults, the allow-lists for select inputs, and the
upstream endpoint it maps to. The studio form, the validation rules and the
gateway all look features up in this table instead of branching on ids.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class FeatureType(str, Enum):
    """Feature identifiers as used by the studio UI."""

    UPSCALE = "upscale"
    IC_LIGHT = "portraits/ic-light"
    CLARITY = "clarity"
    ENHANCE = "enhance"
    AI_BEAUTIFY = "ai-beautify"
    REPLACE_BG = "replace-bg"
    STYLE = "style"
    COMIC = "comic/generate"


class FeatureConfig(BaseModel):
    """Immutable description of one feature."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Short name shown in the sidebar")
    label: str
    description: str
    endpoint: str = Field(..., description="Upstream path, appended to the upstream base URL")
    gateway_id: str = Field(..., description="Discriminator sent to the gateway in x-feature-type")
    inputs: Tuple[str, ...] = ()
    defaults: Dict[str, str] = Field(default_factory=dict)
    choices: Dict[str, Tuple[str, ...]] = Field(
        default_factory=dict,
        description="Allowed values for select inputs (rendering and validation)",
    )
    estimated_time: str = "15-240s"
    json_body: bool = Field(default=False, description="Upstream expects a JSON body instead of multipart")

    @property
    def needs_image(self) -> bool:
        return "image" in self.inputs or "fg" in self.inputs


DEFAULT_FEATURE = FeatureType.UPSCALE
DEFAULT_COMIC_PANELS = 4
DEFAULT_COMIC_STYLE = "anime_color"
MIN_PROMPT_LENGTH = 5

FEATURE_CONFIGS: Dict[FeatureType, FeatureConfig] = {
    FeatureType.UPSCALE: FeatureConfig(
        name="Upscale",
        label="Image Upscaling (GFPGAN)",
        description="Face restoration and 1x/2x/4x upscaling",
        endpoint="/upscale",
        gateway_id="upscale",
        inputs=("image", "scale", "version"),
        defaults={"scale": "2", "version": "v1.4"},
        choices={"scale": ("1", "2", "4"), "version": ("v1.3", "v1.4")},
        estimated_time="15-90s",
    ),
    FeatureType.IC_LIGHT: FeatureConfig(
        name="Relight",
        label="Portrait Relighting",
        description="Relight a portrait from a lighting prompt",
        endpoint="/portraits/ic-light",
        gateway_id="ic-light",
        inputs=(
            "image",
            "image_url",
            "prompt",
            "appended_prompt",
            "negative_prompt",
            "light_source",
            "steps",
            "cfg",
            "width",
            "height",
            "number_of_images",
            "output_format",
            "output_quality",
        ),
        defaults={
            "prompt": "studio soft light, flattering portrait lighting",
            "appended_prompt": "best quality",
            "negative_prompt": "lowres, bad anatomy, bad hands, cropped, worst quality",
            "light_source": "None",
            "steps": "25",
            "cfg": "2",
            "number_of_images": "1",
            "output_format": "webp",
            "output_quality": "80",
        },
        choices={
            "light_source": ("None", "Left Light", "Right Light", "Top Light", "Bottom Light"),
            "number_of_images": tuple(str(n) for n in range(1, 13)),
            "output_format": ("webp", "jpg", "png"),
        },
        estimated_time="30-120s",
    ),
    FeatureType.CLARITY: FeatureConfig(
        name="Clarity",
        label="Clarity Improvement (Real-ESRGAN)",
        description="Sharpening and 2x/4x super-resolution",
        endpoint="/clarity",
        gateway_id="clarity",
        inputs=("image", "scale", "faceEnhance"),
        defaults={"scale": "2", "faceEnhance": "false"},
        choices={"scale": ("2", "4"), "faceEnhance": ("false", "true")},
        estimated_time="20-120s",
    ),
    FeatureType.ENHANCE: FeatureConfig(
        name="Enhance",
        label="Image Enhancement (Topaz)",
        description="Quality enhancement with specialised models",
        endpoint="/enhance",
        gateway_id="enhance",
        inputs=("image", "scale", "model"),
        defaults={"scale": "2", "model": "standard-v2"},
        choices={
            "scale": ("2", "4", "6"),
            "model": ("standard-v2", "low-res-v2", "cgi", "high-fidelity-v2", "text-refine"),
        },
        estimated_time="15-60s",
    ),
    FeatureType.AI_BEAUTIFY: FeatureConfig(
        name="Beautify",
        label="AI Beautify",
        description="Four step portrait pipeline",
        endpoint="/ai-beautify",
        gateway_id="beautify",
        inputs=("image",),
        estimated_time="30-90s",
    ),
    FeatureType.REPLACE_BG: FeatureConfig(
        name="Background",
        label="Background Replacement",
        description="Remove the background or replace it with a new one",
        endpoint="/replace-bg",
        gateway_id="replace-bg",
        inputs=("fg", "bg", "mode", "fit", "position", "featherPx", "shadow", "signTtl"),
        defaults={
            "mode": "replace",
            "fit": "cover",
            "position": "centre",
            "featherPx": "1",
            "shadow": "1",
            "signTtl": "3600",
        },
        choices={"mode": ("remove", "replace")},
        estimated_time="20-60s",
    ),
    FeatureType.STYLE: FeatureConfig(
        name="Style",
        label="Style Transfer",
        description="Turn a photo into an artistic style",
        endpoint="/style",
        gateway_id="style",
        inputs=("image", "style", "extra"),
        defaults={"style": "anime"},
        choices={"style": ("anime", "ghibli", "watercolor", "oil-painting", "sketches", "cartoon")},
        estimated_time="30-150s",
    ),
    FeatureType.COMIC: FeatureConfig(
        name="Comic",
        label="Comic Generation",
        description="Generate comic pages from a text prompt",
        endpoint="/comic/generate",
        gateway_id="comic",
        inputs=("prompt", "panels", "style"),
        defaults={"panels": str(DEFAULT_COMIC_PANELS), "style": DEFAULT_COMIC_STYLE},
        choices={"style": (DEFAULT_COMIC_STYLE,)},
        estimated_time="60-240s",
        json_body=True,
    ),
}

# Gateway discriminator -> feature
GATEWAY_FEATURES: Dict[str, FeatureType] = {
    config.gateway_id: feature for feature, config in FEATURE_CONFIGS.items()
}


def get_feature(feature_id: str) -> Optional[FeatureType]:
    """Resolve a studio feature id, returning None when unknown."""
    try:
        return FeatureType(feature_id)
    except ValueError:
        return None


def get_feature_config(feature: FeatureType) -> FeatureConfig:
    return FEATURE_CONFIGS[feature]


def resolve_gateway_feature(gateway_id: str) -> Optional[FeatureType]:
    """Resolve the gateway discriminator (``x-feature-type``) to a feature."""
    return GATEWAY_FEATURES.get(gateway_id)
