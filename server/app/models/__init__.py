"""
Models package for Feature Studio.

This package contains Pydantic models for request/response validation:
- schemas: upstream/gateway envelope, comic request body, catalogue and health responses

All models use Pydantic BaseModel for automatic validation and serialization.
"""

from .schemas import (
    ComicPage,
    ComicRequest,
    Envelope,
    ErrorInfo,
    FeatureInfo,
    HealthResponse,
    OutputItem,
    ResultData,
    utc_timestamp,
)

__all__ = [
    "ComicPage",
    "ComicRequest",
    "Envelope",
    "ErrorInfo",
    "FeatureInfo",
    "HealthResponse",
    "OutputItem",
    "ResultData",
    "utc_timestamp",
]
