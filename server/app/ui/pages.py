"""
Server-rendered HTML for the studio.

Controls are rendered from the feature catalogue: selects come from the
feature allow-lists, everything else from the widget table below.
"""
from __future__ import annotations

from html import escape
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlencode

from ..core.features import FEATURE_CONFIGS, FeatureConfig, FeatureType
from ..services.result_extraction import OutcomeState
from ..services.studio_state import READY_STATUS, StudioState

# field -> (label, widget kind, html attributes)
INPUT_WIDGETS: Dict[str, Tuple[str, str, Dict[str, str]]] = {
    "image_url": ("Image URL (used when no file is uploaded)", "url", {"placeholder": "https://example.com/image.jpg"}),
    "prompt": ("Prompt", "textarea", {}),
    "appended_prompt": ("Appended Prompt", "text", {"placeholder": "best quality"}),
    "negative_prompt": ("Negative Prompt", "text", {"placeholder": "lowres, bad anatomy, bad hands..."}),
    "steps": ("Steps (1-100)", "number", {"min": "1", "max": "100"}),
    "cfg": ("Guidance (1-32)", "number", {"min": "1", "max": "32"}),
    "width": ("Output Width (256-1024, step 64)", "number", {"min": "256", "max": "1024", "step": "64"}),
    "height": ("Output Height (256-1024, step 64)", "number", {"min": "256", "max": "1024", "step": "64"}),
    "output_quality": ("Output Quality (1-100)", "range", {"min": "1", "max": "100"}),
    "extra": ("Extra Description (optional)", "text", {"placeholder": "e.g. add sunset background"}),
    "panels": ("Panels", "number", {"min": "1", "max": "12"}),
    "fit": ("Fit", "text", {}),
    "position": ("Position", "text", {}),
    "featherPx": ("Feather (px)", "number", {"min": "0"}),
    "shadow": ("Shadow", "number", {"min": "0", "max": "1"}),
    "signTtl": ("Signed URL TTL (s)", "number", {"min": "60"}),
}

SELECT_LABELS: Dict[str, str] = {
    "scale": "Scale",
    "version": "Model Version",
    "light_source": "Light Source",
    "number_of_images": "Number of Images",
    "output_format": "Output Format",
    "model": "Model",
    "style": "Style",
    "mode": "Background Mode",
    "faceEnhance": "Face Enhance",
}

PROMPT_PLACEHOLDERS: Dict[FeatureType, str] = {
    FeatureType.COMIC: "e.g. A girl discovers a mysterious portal in the forest",
    FeatureType.IC_LIGHT: "studio soft light, flattering portrait lighting",
}

_STYLE = """
body { font-family: system-ui, sans-serif; margin: 0; background: #f6f6f8; color: #111; }
header { padding: 16px 24px; background: #111; color: #fff; }
.layout { display: flex; gap: 24px; padding: 24px; }
nav { width: 220px; }
nav a { display: block; padding: 10px 12px; border-radius: 10px; color: #111; text-decoration: none; margin-bottom: 6px; }
nav a.active { background: #111; color: #fff; }
nav small { display: block; opacity: .7; }
main { flex: 1; display: flex; gap: 24px; flex-wrap: wrap; }
.card { background: #fff; border-radius: 12px; padding: 20px; box-shadow: 0 4px 14px rgba(0,0,0,.06); }
form.card { width: 360px; }
form label { display: block; font-weight: 600; font-size: 14px; margin: 12px 0 4px; }
form input, form select, form textarea { width: 100%; box-sizing: border-box; padding: 8px; }
.error { padding: 10px; border-radius: 8px; background: #fde8e8; color: #9b1c1c; }
.progress { height: 8px; background: #eee; border-radius: 4px; overflow: hidden; margin: 12px 0; }
.progress div { height: 100%; background: #4f46e5; }
.results img { max-width: 420px; width: 100%; border-radius: 12px; display: block; }
.status { display: flex; gap: 12px; align-items: center; }
.dot { width: 10px; height: 10px; border-radius: 50%; background: #999; }
.dot.busy { background: #f59e0b; } .dot.done { background: #10b981; }
"""

_PROGRESS_SCRIPT = """
<script>
document.getElementById("feature-form").addEventListener("submit", function () {
  var bar = document.getElementById("progress");
  bar.hidden = false;
  var timer = setInterval(function () {
    fetch("/studio/status").then(function (r) { return r.json(); }).then(function (s) {
      bar.firstElementChild.style.width = s.progress + "%";
      if (!s.is_processing && s.progress >= 100) { clearInterval(timer); }
    }).catch(function () { clearInterval(timer); });
  }, 450);
});
</script>
"""


def _attrs(attrs: Dict[str, str]) -> str:
    return "".join(f' {name}="{escape(value)}"' for name, value in attrs.items())


def feature_url(feature: FeatureType) -> str:
    return "/studio?" + urlencode({"feature": feature.value})


def download_url(feature: FeatureType, url: str, index: int) -> str:
    return "/studio/download?" + urlencode({"url": url, "index": index, "feature": feature.value})


def render_sidebar(selected: FeatureType) -> str:
    links = []
    for feature, config in FEATURE_CONFIGS.items():
        css = ' class="active"' if feature == selected else ""
        links.append(
            f'<a href="{escape(feature_url(feature))}"{css}>{escape(config.name)}'
            f"<small>{escape(config.description)}</small></a>"
        )
    return f"<nav>{''.join(links)}</nav>"


def _select(key: str, config: FeatureConfig, feature: FeatureType, value: str) -> str:
    label = SELECT_LABELS.get(key, key)
    if key == "style":
        label = "Comic Style" if feature == FeatureType.COMIC else "Artistic Style"
    options = []
    for option in config.choices[key]:
        text = f"{option}x" if key == "scale" else option
        selected = " selected" if option == value else ""
        options.append(f'<option value="{escape(option)}"{selected}>{escape(text)}</option>')
    return f'<label for="{key}">{escape(label)}</label><select id="{key}" name="{key}">{"".join(options)}</select>'


def _widget(key: str, feature: FeatureType, value: str) -> str:
    label, kind, attrs = INPUT_WIDGETS.get(key, (key, "text", {}))
    if key == "prompt":
        label = "Story Prompt" if feature == FeatureType.COMIC else "Lighting Prompt"
        attrs = {"placeholder": PROMPT_PLACEHOLDERS.get(feature, "")}
    if kind == "textarea":
        return (
            f'<label for="{key}">{escape(label)}</label>'
            f'<textarea id="{key}" name="{key}" rows="4"{_attrs(attrs)}>{escape(value)}</textarea>'
        )
    return (
        f'<label for="{key}">{escape(label)}</label>'
        f'<input id="{key}" name="{key}" type="{kind}" value="{escape(value)}"{_attrs(attrs)}>'
    )


def render_form(feature: FeatureType, values: Dict[str, str], error: Optional[str]) -> str:
    config = FEATURE_CONFIGS[feature]
    parts: List[str] = [
        f"<h2>{escape(config.label)}</h2>",
        f"<p>{escape(config.description)}</p>",
    ]
    if error:
        parts.append(f'<div class="error">{escape(error)}</div>')
    parts.append('<div id="progress" class="progress" hidden><div style="width:5%"></div></div>')
    parts.append(f'<input type="hidden" name="feature" value="{escape(feature.value)}">')

    if config.needs_image:
        label = "Foreground Image (fg)" if feature == FeatureType.REPLACE_BG else "Upload Image"
        parts.append(
            f'<label for="image">{label}</label>'
            '<input id="image" name="image" type="file" accept="image/*">'
        )
    if "bg" in config.inputs:
        parts.append(
            '<label for="bg">Background Image (bg, replace mode only)</label>'
            '<input id="bg" name="bg" type="file" accept="image/*">'
        )

    for key in config.inputs:
        if key in ("image", "fg", "bg"):
            continue
        value = values.get(key, config.defaults.get(key, ""))
        if key in config.choices:
            parts.append(_select(key, config, feature, value))
        else:
            parts.append(_widget(key, feature, value))

    parts.append('<p><button type="submit">Process</button></p>')
    parts.append(f"<small>Estimated time: {escape(config.estimated_time)}. Keep this tab open while processing.</small>")
    return (
        '<form id="feature-form" class="card" method="post" action="/studio/submit" '
        f'enctype="multipart/form-data">{"".join(parts)}</form>'
    )


def render_results(state: StudioState) -> str:
    dot = "busy" if state.is_processing else ("done" if state.processed_images else "")
    status = escape(state.processing_status or READY_STATUS)
    parts = [f'<div class="status"><span class="dot {dot}"></span><span>{status}</span>']
    if state.request_id:
        parts.append(f"<code>req: {escape(state.request_id)}</code>")
    parts.append("</div>")

    if state.uploaded_image:
        parts.append(
            '<h3>Original</h3>'
            f'<img src="{escape(state.uploaded_image)}" alt="Original" style="max-width:420px;width:100%">'
            '<form method="post" action="/studio/clear"><button type="submit">Delete</button></form>'
        )

    if state.outcome == OutcomeState.EMPTY:
        parts.append('<p class="empty">No image was returned for this request.</p>')

    for index, url in enumerate(state.processed_images):
        parts.append(
            f'<div class="results"><h3>Result {index + 1}</h3>'
            f'<img src="{escape(url)}" alt="Processed {index + 1}">'
            f'<a href="{escape(download_url(state.selected_feature, url, index))}">Download</a></div>'
        )
    return f'<section class="card">{"".join(parts)}</section>'


def render_studio_page(state: StudioState, values: Optional[Dict[str, str]] = None, title: str = "Feature Studio") -> str:
    """Full page: sidebar, form for the selected feature, status and results."""
    feature = state.selected_feature
    return (
        "<!doctype html><html><head><meta charset=\"utf-8\">"
        '<meta name="viewport" content="width=device-width,initial-scale=1">'
        f"<title>{escape(title)}</title><style>{_STYLE}</style></head><body>"
        f"<header><strong>{escape(title)}</strong></header>"
        f'<div class="layout">{render_sidebar(feature)}<main>'
        f"{render_form(feature, values or {}, state.error)}"
        f"{render_results(state)}"
        f"</main></div>{_PROGRESS_SCRIPT}</body></html>"
    )
