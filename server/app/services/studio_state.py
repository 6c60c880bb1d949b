"""
Studio UI state and its transitions.

StudioState is immutable; each user action produces a new state through one
of the reducer functions below. StudioSession owns the current state and the
submitter and is the only place the state gets replaced. Each browser gets
its own StudioSession from the StudioSessionStore.
"""
from __future__ import annotations

import logging
import secrets
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

from ..core.features import DEFAULT_FEATURE, FeatureType
from .form_state import FormState, FormValidationError
from .result_extraction import OutcomeState, ProcessOutcome
from .submission import FeatureSubmitter, SubmissionInProgressError

logger = logging.getLogger(__name__)

READY_STATUS = "Ready for a new request"
SENDING_STATUS = "Sending request to the server..."


@dataclass(frozen=True)
class StudioState:
    selected_feature: FeatureType = DEFAULT_FEATURE
    uploaded_image: Optional[str] = None
    processed_images: Tuple[str, ...] = ()
    is_processing: bool = False
    processing_status: str = ""
    request_id: Optional[str] = None
    error: Optional[str] = None
    progress: float = 0.0
    outcome: Optional[OutcomeState] = None


def select_feature(state: StudioState, feature: FeatureType) -> StudioState:
    """Switching feature clears everything from the previous one."""
    return StudioState(selected_feature=feature, is_processing=state.is_processing)


def reject_submission(state: StudioState, message: str) -> StudioState:
    return replace(state, error=message, progress=0.0)


def start_processing(state: StudioState, status: str = SENDING_STATUS) -> StudioState:
    return replace(
        state,
        is_processing=True,
        processing_status=status,
        processed_images=(),
        request_id=None,
        error=None,
        outcome=None,
    )


def update_progress(state: StudioState, value: float) -> StudioState:
    return replace(state, progress=value)


def set_uploaded_image(state: StudioState, preview_url: Optional[str]) -> StudioState:
    return replace(state, uploaded_image=preview_url)


def apply_outcome(state: StudioState, outcome: ProcessOutcome) -> StudioState:
    is_error = outcome.state == OutcomeState.ERROR
    return replace(
        state,
        is_processing=False,
        processing_status=outcome.message,
        processed_images=tuple(outcome.image_urls),
        request_id=outcome.request_id or state.request_id,
        error=outcome.message if is_error else None,
        progress=0.0 if is_error else 100.0,
        outcome=outcome.state,
    )


def delete_image(state: StudioState) -> StudioState:
    return replace(
        state,
        uploaded_image=None,
        processed_images=(),
        processing_status="",
        request_id=None,
        error=None,
        progress=0.0,
        outcome=None,
    )


class StudioSession:
    """Current studio state plus the submitter that drives it."""

    def __init__(self, submitter: FeatureSubmitter) -> None:
        self.submitter = submitter
        self.state = StudioState()

    def select(self, feature: FeatureType) -> StudioState:
        if feature != self.state.selected_feature:
            self.state = select_feature(self.state, feature)
        return self.state

    def reject(self, message: str) -> StudioState:
        self.state = reject_submission(self.state, message)
        return self.state

    def clear(self) -> StudioState:
        self.state = delete_image(self.state)
        return self.state

    def _on_progress(self, value: float) -> None:
        self.state = update_progress(self.state, value)

    async def submit(self, form: FormState) -> StudioState:
        """
        Run one submission and fold its outcome into the state.

        Validation failures and a submission attempted while another is in
        flight only set the error message; no request is made for either.
        """
        if self.submitter.is_processing:
            self.state = reject_submission(self.state, "A request is already being processed.")
            return self.state

        self.select(form.feature)

        if form.image is not None:
            self.state = set_uploaded_image(self.state, form.image.data_url)

        self.state = start_processing(self.state)
        try:
            outcome = await self.submitter.submit(form, on_progress=self._on_progress)
        except (FormValidationError, SubmissionInProgressError) as e:
            logger.info(f"🚫 [Studio] Submission for {form.feature.value} rejected: {e}")
            self.state = reject_submission(
                replace(self.state, is_processing=False, processing_status=""), str(e)
            )
            return self.state

        self.state = apply_outcome(self.state, outcome)
        return self.state

    def owns_result(self, url: str) -> bool:
        """True when ``url`` is one of the images produced for this session."""
        return url in self.state.processed_images


class StudioSessionStore:
    """
    One StudioSession per browser, keyed by an opaque session id.

    The oldest idle sessions are dropped once ``max_sessions`` is reached;
    sessions with a submission in flight are never evicted.
    """

    def __init__(
        self,
        session_factory: Callable[[], StudioSession],
        max_sessions: int = 256,
    ) -> None:
        self._factory = session_factory
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, StudioSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def any_processing(self) -> bool:
        return any(s.submitter.is_processing for s in self._sessions.values())

    def get(self, session_id: Optional[str]) -> Optional[StudioSession]:
        if not session_id or session_id not in self._sessions:
            return None
        self._sessions.move_to_end(session_id)
        return self._sessions[session_id]

    def create(self) -> Tuple[str, StudioSession]:
        self._evict()
        session_id = secrets.token_urlsafe(16)
        session = self._factory()
        self._sessions[session_id] = session
        logger.debug(f"🆕 [Studio] Session {session_id[:6]}... created ({len(self._sessions)} active)")
        return session_id, session

    def _evict(self) -> None:
        for session_id in list(self._sessions):
            if len(self._sessions) < self.max_sessions:
                return
            if not self._sessions[session_id].submitter.is_processing:
                del self._sessions[session_id]
