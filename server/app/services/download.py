"""
Best-effort download of a result image.

The image is fetched server side so it can be served with a descriptive
filename. If the fetch fails the caller falls back to sending the user to the
original URL.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

import httpx

from shared.clients.service_client import ServiceClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadResult:
    url: str
    filename: str
    content: Optional[bytes] = None
    media_type: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        """True when the image could not be fetched and the original URL must be used."""
        return self.content is None


def download_filename(feature_id: str, index: int, today: Optional[date] = None) -> str:
    """``<feature>_<YYYY-MM-DD>_<n>.jpg`` with ``n`` counted from 1."""
    feature_name = feature_id.replace("-", "_", 1).replace("/", "_")
    stamp = (today or date.today()).isoformat()
    return f"{feature_name}_{stamp}_{index + 1}.jpg"


def fallback_filename(index: int) -> str:
    return f"processed-image-{index + 1}.jpg"


async def download_image(
    client: ServiceClient,
    url: str,
    index: int,
    feature_id: str,
) -> DownloadResult:
    """
    Fetch ``url`` as binary for saving under a derived filename.

    Never raises for fetch failures; a fallback result pointing at the
    original URL is returned instead.
    """
    try:
        content, media_type = await client.fetch_bytes(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"⚠️ [Download] Falling back to direct link for {url}: {e}")
        return DownloadResult(url=url, filename=fallback_filename(index))

    return DownloadResult(
        url=url,
        filename=download_filename(feature_id, index),
        content=content,
        media_type=media_type,
    )
