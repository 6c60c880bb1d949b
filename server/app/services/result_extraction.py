"""
Turn an upstream envelope into a flat list of image URLs.

Results come in several shapes depending on the feature. Extractors are tried
in a fixed order and the first one that yields at least one URL wins:

1. ``pages[]``        multi-page comic story
2. ``page_url``       single comic page
3. ``data.outputs[]`` multi-image pipelines
4. ``data.presigned_url`` / ``data.url``  single-image pipelines (presigned first)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from ..models import Envelope

logger = logging.getLogger(__name__)

Extractor = Callable[[Envelope], Optional[List[str]]]

GENERIC_ERROR_MESSAGE = "Processing failed. Please try again."
EMPTY_RESULT_MESSAGE = "Processing finished but no image URL was returned."


def _non_empty(urls: Iterable[Optional[str]]) -> Optional[List[str]]:
    kept = [url for url in urls if url]
    return kept or None


def from_pages(envelope: Envelope) -> Optional[List[str]]:
    if not envelope.pages:
        return None
    return _non_empty(page.page_url or page.presigned_url for page in envelope.pages)


def from_page_url(envelope: Envelope) -> Optional[List[str]]:
    return _non_empty([envelope.page_url])


def from_outputs(envelope: Envelope) -> Optional[List[str]]:
    if envelope.data is None or not envelope.data.outputs:
        return None
    return _non_empty(output.url for output in envelope.data.outputs)


def from_data_url(envelope: Envelope) -> Optional[List[str]]:
    if envelope.data is None:
        return None
    return _non_empty([envelope.data.presigned_url or envelope.data.url])


RESULT_EXTRACTORS: Tuple[Extractor, ...] = (
    from_pages,
    from_page_url,
    from_outputs,
    from_data_url,
)


def extract_image_urls(envelope: Envelope) -> List[str]:
    """Image URLs from the first matching result shape, or an empty list."""
    for extractor in RESULT_EXTRACTORS:
        urls = extractor(envelope)
        if urls:
            return urls
    return []


class OutcomeState(str, Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class ProcessOutcome:
    """Terminal result of one submission, as shown to the user."""

    state: OutcomeState
    message: str
    image_urls: List[str] = field(default_factory=list)
    request_id: Optional[str] = None

    @classmethod
    def failure(cls, message: str, request_id: Optional[str] = None) -> "ProcessOutcome":
        return cls(state=OutcomeState.ERROR, message=message, request_id=request_id)


def interpret_result(envelope: Envelope) -> ProcessOutcome:
    """
    Classify an envelope as error, success with images, or success without images.

    A successful response without any usable URL is reported with its own
    message rather than as an error.
    """
    if envelope.status == "error":
        return ProcessOutcome.failure(
            envelope.error_message(GENERIC_ERROR_MESSAGE),
            request_id=envelope.request_id,
        )

    urls = extract_image_urls(envelope)
    if not urls:
        logger.warning(f"⚠️ [Result] Request {envelope.request_id} succeeded without image URLs")
        return ProcessOutcome(
            state=OutcomeState.EMPTY,
            message=EMPTY_RESULT_MESSAGE,
            request_id=envelope.request_id,
        )

    message = f"Completed {len(urls)} image{'s' if len(urls) != 1 else ''}"
    if envelope.request_id:
        message += f" · Request: {envelope.request_id}"
    return ProcessOutcome(
        state=OutcomeState.SUCCESS,
        message=message,
        image_urls=urls,
        request_id=envelope.request_id,
    )
