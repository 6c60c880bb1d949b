"""
Submit a studio form to the upstream service and interpret the answer.

Submissions go either straight to the upstream endpoint of the feature
(``direct``) or through our own gateway route (``gateway``), which takes the
feature discriminator in the ``x-feature-type`` header.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from shared.clients.service_client import ServiceClient

from ..models import Envelope
from .form_builder import build_comic_payload, build_form
from .form_state import FormState
from .progress import ProgressTicker
from .result_extraction import GENERIC_ERROR_MESSAGE, ProcessOutcome, interpret_result
from .validation import validate_form

logger = logging.getLogger(__name__)

GATEWAY_PROCESS_PATH = "/api/process"
FEATURE_HEADER = "x-feature-type"
UNEXPECTED_RESPONSE_MESSAGE = "The server returned a response in an unexpected format."


class SubmissionInProgressError(RuntimeError):
    """A second submission was attempted while one is still in flight."""


class FeatureSubmitter:
    """
    Sends one submission at a time.

    While a request is in flight ``is_processing`` is True and further
    submissions are refused. Network and parse failures become error outcomes;
    nothing is retried.
    """

    def __init__(
        self,
        client: ServiceClient,
        mode: str = "direct",
        ticker_factory: Callable[..., ProgressTicker] = ProgressTicker,
    ) -> None:
        if mode not in ("direct", "gateway"):
            raise ValueError(f"Unknown submit mode '{mode}'")
        self.client = client
        self.mode = mode
        self._ticker_factory = ticker_factory
        self._busy = False

    @property
    def is_processing(self) -> bool:
        return self._busy

    async def _send(self, state: FormState) -> httpx.Response:
        config = state.config
        fields, files = build_form(state)

        if self.mode == "gateway":
            return await self.client.post(
                GATEWAY_PROCESS_PATH,
                data=fields,
                files=files or None,
                headers={FEATURE_HEADER: config.gateway_id},
            )

        if config.json_body:
            return await self.client.post(config.endpoint, json=build_comic_payload(fields))
        return await self.client.post(config.endpoint, data=fields, files=files or None)

    async def submit(
        self,
        state: FormState,
        on_progress: Optional[Callable[[float], None]] = None,
    ) -> ProcessOutcome:
        """
        Validate, send and interpret one submission.

        Args:
            state: Form values for the selected feature
            on_progress: Called with every progress value change

        Returns:
            ProcessOutcome (success, empty or error)

        Raises:
            SubmissionInProgressError: If another submission is still running
            FormValidationError: If client-side validation fails (no request is made)
        """
        if self._busy:
            raise SubmissionInProgressError("A request is already being processed.")

        validate_form(state)

        self._busy = True
        ticker = self._ticker_factory(on_change=on_progress)
        try:
            async with ticker.running():
                response = await self._send(state)
                payload = response.json()

            envelope = Envelope.model_validate(payload)
            if response.is_error or envelope.status == "error":
                ticker.reset()
                message = envelope.error_message(GENERIC_ERROR_MESSAGE)
                logger.error(
                    f"❌ [Submit] {state.feature.value} rejected with HTTP {response.status_code}: {message}"
                )
                return ProcessOutcome.failure(message, request_id=envelope.request_id)

            ticker.complete()
            outcome = interpret_result(envelope)
            logger.info(f"✅ [Submit] {state.feature.value}: {outcome.message}")
            return outcome

        except ValidationError as e:
            ticker.reset()
            logger.error(f"❌ [Submit] {state.feature.value} returned an unexpected body: {e}")
            return ProcessOutcome.failure(UNEXPECTED_RESPONSE_MESSAGE)
        except (httpx.HTTPError, ValueError) as e:
            # ValueError covers undecodable JSON
            ticker.reset()
            logger.error(f"❌ [Submit] {state.feature.value} failed: {type(e).__name__}: {e}")
            return ProcessOutcome.failure(str(e) or "Unknown error occurred")
        finally:
            self._busy = False
