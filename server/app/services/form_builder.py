"""
Build the upstream request payload from a FormState.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

from ..core.features import DEFAULT_COMIC_PANELS, DEFAULT_COMIC_STYLE, FeatureType
from ..models import ComicRequest
from .form_state import FormState

FileTuple = Tuple[str, bytes, str]

# Inputs that are sent as files, never as text fields
_FILE_INPUTS = ("image", "fg", "bg")


def build_form(state: FormState) -> Tuple[Dict[str, str], Dict[str, FileTuple]]:
    """
    Split a FormState into multipart text fields and files.

    Only declared inputs with a non-empty value are sent. Background
    replacement sends the main image as ``fg`` and, in replace mode only, the
    background as ``bg``. Portrait relighting sends either the uploaded file or
    ``image_url``, never both.

    Returns:
        Tuple of (fields, files)
    """
    config = state.config
    files: Dict[str, FileTuple] = {}

    if state.feature == FeatureType.IC_LIGHT:
        if state.image is not None:
            files["image"] = state.image.as_file()
    elif state.feature == FeatureType.REPLACE_BG:
        if state.image is not None:
            files["fg"] = state.image.as_file()
        if state.background_mode == "replace" and state.background is not None:
            files["bg"] = state.background.as_file()
    elif "image" in config.inputs and state.image is not None:
        files["image"] = state.image.as_file()

    fields: Dict[str, str] = {}
    for key in config.inputs:
        value = state.value(key)
        if not value or key in _FILE_INPUTS:
            continue
        if key == "image_url":
            if state.image is not None:
                continue
            value = value.strip()
        fields[key] = value

    return fields, files


def _parse_panels(raw: Any) -> int:
    if raw is None or raw == "":
        return DEFAULT_COMIC_PANELS
    try:
        return int(str(raw).strip())
    except ValueError:
        return DEFAULT_COMIC_PANELS


def build_comic_payload(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """JSON body for comic generation: prompt, panels (default 4), style (default anime_color)."""
    request = ComicRequest(
        prompt=fields.get("prompt"),
        panels=_parse_panels(fields.get("panels")),
        style=fields.get("style") or DEFAULT_COMIC_STYLE,
    )
    return request.model_dump()
