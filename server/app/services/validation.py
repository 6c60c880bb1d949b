"""
Client-side validation rules for studio submissions.

Every rule is a small pure function taking the FormState and returning an
error message, or None when the rule passes. Rules shared by all features run
first, then the feature-specific ones keyed by FeatureType. The first failing
rule stops the submission with a FormValidationError, before any request is
made.
"""
from __future__ import annotations

import math
from typing import Callable, Dict, List, Optional, Tuple

from ..core.features import MIN_PROMPT_LENGTH, FeatureType
from .form_state import FormState, FormValidationError

Rule = Callable[[FormState], Optional[str]]

MIN_DIMENSION = 256
MAX_DIMENSION = 1024
DIMENSION_STEP = 64

# Features whose main image may come from somewhere else (prompt or image_url)
_IMAGE_OPTIONAL = (FeatureType.COMIC, FeatureType.IC_LIGHT)


def is_valid_dimension(value: str) -> bool:
    """Width/height must lie in [256, 1024] and be a multiple of 64."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    if not math.isfinite(number) or not number.is_integer():
        return False
    return MIN_DIMENSION <= number <= MAX_DIMENSION and int(number) % DIMENSION_STEP == 0


def require_image(state: FormState) -> Optional[str]:
    if state.feature in _IMAGE_OPTIONAL:
        return None
    if "image" in state.config.inputs and state.image is None:
        return "Please upload an image before submitting."
    return None


def require_foreground(state: FormState) -> Optional[str]:
    if "fg" in state.config.inputs and state.image is None:
        return "A foreground image (fg) is required."
    return None


def check_choices(state: FormState) -> Optional[str]:
    """Select inputs only accept the values listed for the feature."""
    for key, allowed in state.config.choices.items():
        value = state.value(key)
        if value and value not in allowed:
            return f"Invalid {key} '{value}' for {state.config.name}. Allowed: {', '.join(allowed)}."
    return None


def require_image_or_url(state: FormState) -> Optional[str]:
    if state.image is None and not state.value("image_url").strip():
        return "Upload an image or provide an image_url."
    return None


def check_dimensions(state: FormState) -> Optional[str]:
    for key in ("width", "height"):
        value = state.value(key)
        if value and not is_valid_dimension(value):
            return (
                f"{key.capitalize()} must be between {MIN_DIMENSION} and {MAX_DIMENSION} "
                f"and a multiple of {DIMENSION_STEP}."
            )
    return None


def require_background_in_replace_mode(state: FormState) -> Optional[str]:
    if state.background_mode == "replace" and state.background is None:
        return "Choose a background image in replace mode."
    return None


def require_prompt(state: FormState) -> Optional[str]:
    if len(state.value("prompt").strip()) < MIN_PROMPT_LENGTH:
        return f"Prompt must be at least {MIN_PROMPT_LENGTH} characters."
    return None


COMMON_RULES: Tuple[Rule, ...] = (require_image, require_foreground)

FEATURE_RULES: Dict[FeatureType, Tuple[Rule, ...]] = {
    FeatureType.IC_LIGHT: (require_image_or_url, check_dimensions),
    FeatureType.REPLACE_BG: (require_background_in_replace_mode,),
    FeatureType.COMIC: (require_prompt,),
}


def rules_for(feature: FeatureType) -> List[Rule]:
    """Ordered rules applied to ``feature``."""
    return [*COMMON_RULES, *FEATURE_RULES.get(feature, ()), check_choices]


def validate_form(state: FormState) -> None:
    """
    Run every rule for the state's feature.

    Raises:
        FormValidationError: With the message of the first failing rule
    """
    for rule in rules_for(state.feature):
        message = rule(state)
        if message:
            raise FormValidationError(message)
