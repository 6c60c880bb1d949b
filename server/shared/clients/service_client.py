"""
Async HTTP client for the upstream processing API.

Shared by the gateway (forwarding), the studio submitter and the result
downloader. Each owner creates its own ServiceClient and closes it on
shutdown.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

# (filename, content, content_type), as accepted by httpx ``files=``
FileTuple = Tuple[str, bytes, str]

ERROR_BODY_PREVIEW = 500


class ServiceClient:
    """
    Thin wrapper around ``httpx.AsyncClient`` bound to one base URL.

    ``post`` returns the response whatever its status, because the gateway
    mirrors upstream statuses. Transport failures are logged and re-raised.
    """

    def __init__(
        self,
        service_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            service_url: Base URL that relative paths are appended to
            timeout: Seconds allowed for connect, read, write and pool acquisition
            transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        """
        self.service_url = service_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            transport=transport,
        )

    def url_for(self, path: str) -> str:
        """Absolute URLs pass through; anything else is joined onto ``service_url``."""
        if path.startswith(("http://", "https://")):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.service_url}{path}"

    async def post(
        self,
        path: str,
        data: Optional[Mapping[str, Any]] = None,
        files: Optional[Dict[str, FileTuple]] = None,
        json: Optional[Dict[str, Any]] = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """
        POST to ``path`` with form fields, files, a JSON body or raw content.

        Raises:
            httpx.RequestError: Connection failures and timeouts
        """
        url = self.url_for(path)
        logger.info(f"🌐 [ServiceClient] POST {url}")
        try:
            response = await self._client.post(
                url, data=data, files=files, json=json, content=content, headers=headers
            )
        except httpx.RequestError as e:
            logger.error(f"❌ [ServiceClient] POST {url} failed: {type(e).__name__}: {e}")
            raise

        if response.is_error:
            logger.error(
                f"❌ [ServiceClient] POST {url} -> HTTP {response.status_code}: "
                f"{response.text[:ERROR_BODY_PREVIEW]}"
            )
        else:
            logger.info(f"📡 [ServiceClient] POST {url} -> HTTP {response.status_code}")
        return response

    async def fetch_bytes(self, url: str) -> Tuple[bytes, str]:
        """
        GET ``url`` and return ``(content, content_type)``.

        Raises:
            httpx.HTTPStatusError: Non-2xx response
            httpx.RequestError: Connection failures and timeouts
        """
        full_url = self.url_for(url)
        try:
            response = await self._client.get(full_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"❌ [ServiceClient] GET {full_url} failed: {type(e).__name__}: {e}")
            raise

        return response.content, response.headers.get("content-type", "application/octet-stream")

    async def close(self) -> None:
        await self._client.aclose()
