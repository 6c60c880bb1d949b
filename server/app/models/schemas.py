from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# Upstream payloads may carry extra keys and numeric ids or codes
UPSTREAM_MODEL_CONFIG = ConfigDict(extra="allow", coerce_numbers_to_str=True)


def utc_timestamp() -> str:
    """ISO 8601 timestamp used when upstream omits one."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ErrorInfo(BaseModel):
    model_config = UPSTREAM_MODEL_CONFIG

    message: Optional[str] = None
    code: Optional[str] = None
    details: Optional[str] = None


class OutputItem(BaseModel):
    model_config = UPSTREAM_MODEL_CONFIG

    url: Optional[str] = None
    index: Optional[int] = None


class ResultData(BaseModel):
    """``data`` block of an upstream result (single or multi image pipelines)."""
    model_config = UPSTREAM_MODEL_CONFIG

    url: Optional[str] = None
    presigned_url: Optional[str] = None
    key: Optional[str] = None
    outputs: Optional[List[OutputItem]] = None


class ComicPage(BaseModel):
    """One page of a multi-page comic story."""
    model_config = UPSTREAM_MODEL_CONFIG

    page_index: Optional[int] = None
    page_url: Optional[str] = None
    key: Optional[str] = None
    presigned_url: Optional[str] = None
    panels: List[Any] = Field(default_factory=list)


class Envelope(BaseModel):
    """
    Normalized response wrapper.

    Returned by the gateway for every feature and parsed by the studio from
    upstream responses. Upstream may send ``error`` as a bare string; it is kept
    as-is here and normalized by the consumers.
    """
    model_config = UPSTREAM_MODEL_CONFIG

    status: str = Field(default="success", description="'success' or 'error'")
    request_id: Optional[str] = None
    data: Optional[ResultData] = None
    meta: Optional[Dict[str, Any]] = None
    page_url: Optional[str] = Field(default=None, description="Single comic page result")
    pages: Optional[List[ComicPage]] = Field(default=None, description="Multi-page comic story result")
    error: Optional[Union[ErrorInfo, str]] = None
    timestamp: Optional[str] = None

    def error_message(self, fallback: str) -> str:
        """Upstream error text, or ``fallback`` when none was given."""
        if isinstance(self.error, str):
            return self.error or fallback
        if self.error is not None and self.error.message:
            return self.error.message
        return fallback


class ComicRequest(BaseModel):
    """JSON body sent upstream for comic generation."""
    prompt: Optional[str] = None
    panels: int = 4
    style: str = "anime_color"


class FeatureInfo(BaseModel):
    id: str
    name: str
    label: str
    description: str
    endpoint: str
    gateway_id: str
    inputs: List[str]
    defaults: Dict[str, str]
    choices: Dict[str, List[str]]
    estimated_time: str


class HealthResponse(BaseModel):
    status: str
    service: str
    upstream_api_url: str
    submit_mode: str
