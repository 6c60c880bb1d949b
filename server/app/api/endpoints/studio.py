"""
Studio endpoints.

This module serves the studio pages:
- Feature form per selected feature
- Form submission and result rendering
- Progress polling while a submission is in flight
- Result image downloads with a derived filename

Every browser has its own studio session, identified by the
``studio_session`` cookie.
"""

from __future__ import annotations

import logging
from html import escape
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from starlette.datastructures import UploadFile

from ...core.features import DEFAULT_FEATURE, FeatureType, get_feature
from ...services.download import download_image
from ...services.form_state import FormState, FormValidationError, UploadedImage, read_upload
from ...services.studio_state import StudioSession, StudioSessionStore, StudioState
from ...ui.pages import feature_url, render_studio_page

logger = logging.getLogger(__name__)

router = APIRouter(tags=["studio"])

SESSION_COOKIE = "studio_session"


def _store(request: Request) -> StudioSessionStore:
    return request.app.state.studio_sessions


def find_session(request: Request) -> Optional[StudioSession]:
    """Session of the requesting browser, or None when it has none yet."""
    return _store(request).get(request.cookies.get(SESSION_COOKIE))


def get_session(request: Request) -> StudioSession:
    """Session of the requesting browser, created on first visit."""
    session = find_session(request)
    if session is None:
        session_id, session = _store(request).create()
        request.state.new_session_id = session_id
    return session


def _respond(request: Request, response: Response) -> Response:
    """Attach the session cookie when this request started a new session."""
    session_id = getattr(request.state, "new_session_id", None)
    if session_id:
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    return response


def _not_found(feature_id: str) -> HTMLResponse:
    return HTMLResponse(f"<h3>Unknown feature: {escape(feature_id)}</h3>", status_code=404)


async def _read_file(upload: Any, max_bytes: int) -> Optional[UploadedImage]:
    """Uploaded image from a form field; None when the file input was left empty."""
    if not isinstance(upload, UploadFile):
        return None
    content = await upload.read()
    return read_upload(upload.filename, content, upload.content_type, max_bytes=max_bytes)


@router.get("/", include_in_schema=False)
async def root() -> RedirectResponse:
    return RedirectResponse(feature_url(DEFAULT_FEATURE))


@router.get("/studio", response_class=HTMLResponse)
async def studio_page(
    request: Request,
    feature: str = DEFAULT_FEATURE.value,
    session: StudioSession = Depends(get_session),
):
    """Render the form for ``feature`` together with the current status and results."""
    selected = get_feature(feature)
    if selected is None:
        return _respond(request, _not_found(feature))
    state = session.select(selected)
    return _respond(request, HTMLResponse(render_studio_page(state)))


@router.post("/studio/submit", response_class=HTMLResponse)
async def submit_feature(request: Request, session: StudioSession = Depends(get_session)):
    """
    Validate and submit the feature form, then render the outcome.

    Validation failures are shown inline and nothing is sent upstream.
    """
    form = await request.form()
    feature_id = form.get("feature")
    selected = get_feature(feature_id) if isinstance(feature_id, str) else None
    if selected is None:
        return _respond(request, _not_found(str(feature_id)))

    values: Dict[str, str] = {
        key: value
        for key, value in form.items()
        if isinstance(value, str) and key != "feature"
    }
    max_bytes = request.app.state.settings.max_upload_bytes

    try:
        image = await _read_file(form.get("image"), max_bytes)
        background = await _read_file(form.get("bg"), max_bytes)
    except FormValidationError as e:
        session.select(selected)
        state = session.reject(str(e))
        return _respond(request, HTMLResponse(render_studio_page(state, values)))

    form_state = FormState(feature=selected, values=values, image=image, background=background)
    state = await session.submit(form_state)
    return _respond(request, HTMLResponse(render_studio_page(state, values)))


@router.post("/studio/clear")
async def clear_images(request: Request, session: StudioSession = Depends(get_session)) -> Response:
    """Forget the uploaded image and the results."""
    state = session.clear()
    return _respond(request, RedirectResponse(feature_url(state.selected_feature), status_code=303))


@router.get("/studio/status")
async def studio_status(request: Request) -> JSONResponse:
    """Polled by the page while a submission is in flight."""
    session = find_session(request)
    state = session.state if session is not None else StudioState()
    return JSONResponse({
        "feature": state.selected_feature.value,
        "is_processing": state.is_processing,
        "progress": round(state.progress, 1),
        "processing_status": state.processing_status,
        "request_id": state.request_id,
    })


@router.get("/studio/download")
async def download_result(
    request: Request,
    url: str,
    index: int = 0,
    feature: str = DEFAULT_FEATURE.value,
) -> Response:
    """
    Download a result image under a descriptive filename.

    Only images produced for the requesting browser are fetched. Falls back to
    redirecting to the original URL when the image cannot be fetched.
    """
    session = find_session(request)
    if session is None or not session.owns_result(url):
        logger.warning(f"🚫 [Studio] Refused download of unknown URL {url}")
        return Response("Only results of this session can be downloaded", status_code=400)

    selected: Optional[FeatureType] = get_feature(feature)
    feature_id = selected.value if selected is not None else DEFAULT_FEATURE.value

    result = await download_image(request.app.state.download_client, url, index, feature_id)
    if result.is_fallback:
        return RedirectResponse(result.url)

    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
