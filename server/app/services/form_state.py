"""
Form state for one studio submission.

Holds what the user entered for the selected feature: text/select values plus
the main image (or foreground for background replacement) and the optional
background image. Uploads are checked here, before anything else sees them.
"""
from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from ..core.features import FEATURE_CONFIGS, FeatureConfig, FeatureType

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class FormValidationError(ValueError):
    """User input rejected before any network call; the message is shown inline."""


@dataclass(frozen=True)
class UploadedImage:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    def as_file(self) -> Tuple[str, bytes, str]:
        """Tuple accepted by httpx ``files=``."""
        return self.filename, self.content, self.content_type

    @property
    def data_url(self) -> str:
        """Inline preview URL for the uploaded image."""
        encoded = base64.b64encode(self.content).decode()
        return f"data:{self.content_type};base64,{encoded}"


def read_upload(
    filename: Optional[str],
    content: bytes,
    content_type: Optional[str] = None,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> Optional[UploadedImage]:
    """
    Turn a raw upload into an UploadedImage.

    Args:
        filename: Client supplied filename (empty when the file input was left blank)
        content: File bytes
        content_type: Client supplied MIME type
        max_bytes: Size limit accepted by the upstream API

    Returns:
        UploadedImage, or None when no file was chosen

    Raises:
        FormValidationError: If the file is too large or is not an image
    """
    if not filename and not content:
        return None

    if len(content) > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise FormValidationError(f"File must be smaller than {limit_mb}MB.")

    try:
        with Image.open(io.BytesIO(content)) as img:
            img.verify()
            detected = (img.format or "").lower()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"⚠️ [Upload] Rejected non-image upload '{filename}': {e}")
        raise FormValidationError("The selected file is not a valid image.") from e

    if not content_type or not content_type.startswith("image/"):
        content_type = Image.MIME.get(detected.upper(), "application/octet-stream")

    return UploadedImage(
        filename=filename or f"upload.{detected or 'bin'}",
        content=content,
        content_type=content_type,
    )


@dataclass
class FormState:
    """Values entered for one feature; starts from the feature defaults."""

    feature: FeatureType
    values: Dict[str, str] = field(default_factory=dict)
    image: Optional[UploadedImage] = None
    background: Optional[UploadedImage] = None

    @classmethod
    def with_defaults(cls, feature: FeatureType, **values: str) -> "FormState":
        merged = dict(FEATURE_CONFIGS[feature].defaults)
        merged.update(values)
        return cls(feature=feature, values=merged)

    @property
    def config(self) -> FeatureConfig:
        return FEATURE_CONFIGS[self.feature]

    def value(self, key: str) -> str:
        return self.values.get(key) or ""

    @property
    def background_mode(self) -> str:
        """``remove`` or ``replace`` for background replacement."""
        return self.value("mode") or self.config.defaults.get("mode") or "replace"
