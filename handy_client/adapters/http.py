"""aiohttp transport for the device HTTP API."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Mapping, Optional

import aiohttp

from .. import constants

LOGGER = logging.getLogger(__name__)


def failure_body(message: str) -> str:
    """Encode a transport failure the same way the API encodes device errors."""

    return json.dumps({"success": False, "error": message, "transport": True})


class HandyTransport:
    """Non-blocking HTTP access to the device API.

    HTTP and network failures never raise: they are returned as a synthetic
    failure body so that every response is parsed the same way downstream.
    Retries are left to callers.
    """

    def __init__(
        self,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        request_timeout: float = constants.DEFAULT_REQUEST_TIMEOUT_SECONDS,
        upload_timeout: float = constants.DEFAULT_UPLOAD_TIMEOUT_SECONDS,
    ) -> None:
        self.request_timeout = request_timeout
        self.upload_timeout = upload_timeout
        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def get(
        self, url: str, params: Optional[Mapping[str, str]] = None
    ) -> str:
        session = await self._ensure_session()
        LOGGER.debug("GET %s params=%s", url, dict(params or {}))

        try:
            async with asyncio.timeout(self.request_timeout):
                async with session.get(url, params=params) as response:
                    if response.status >= 400:
                        detail = await response.text()
                        return failure_body(_status_message(response.status, detail))
                    return await response.text()
        except asyncio.TimeoutError:
            LOGGER.warning(
                "Request timed out after %.1fs (url=%s)", self.request_timeout, url
            )
            return failure_body(
                f"Request timed out after {self.request_timeout:.1f}s"
            )
        except aiohttp.ClientError as exc:
            LOGGER.warning("Request failed (url=%s): %s", url, exc)
            return failure_body(f"Request failed: {exc}")

    async def post_file(self, url: str, file_name: str, content: bytes) -> str:
        """Upload ``content`` as the ``syncFile`` field of a multipart form."""

        session = await self._ensure_session()
        form = aiohttp.FormData()
        form.add_field(
            constants.UPLOAD_FIELD_NAME,
            content,
            filename=file_name,
            content_type="application/octet-stream",
        )
        LOGGER.debug("POST %s file=%s bytes=%d", url, file_name, len(content))

        try:
            async with asyncio.timeout(self.upload_timeout):
                async with session.post(url, data=form) as response:
                    if response.status >= 400:
                        detail = await response.text()
                        return failure_body(_status_message(response.status, detail))
                    return await response.text()
        except asyncio.TimeoutError:
            LOGGER.warning(
                "Upload timed out after %.1fs (url=%s, file=%s)",
                self.upload_timeout,
                url,
                file_name,
            )
            return failure_body(f"Upload timed out after {self.upload_timeout:.1f}s")
        except aiohttp.ClientError as exc:
            LOGGER.warning("Upload failed (url=%s, file=%s): %s", url, file_name, exc)
            return failure_body(f"Upload failed: {exc}")

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=None)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session


def _status_message(status: int, detail: str) -> str:
    detail = detail.strip()
    if len(detail) > 200:
        detail = detail[:200] + "..."
    if detail:
        return f"HTTP {status}: {detail}"
    return f"HTTP {status}"
