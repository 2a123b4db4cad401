"""Protocol definitions for the transport consumed by the pipeline."""

from __future__ import annotations

from typing import Mapping, Optional, Protocol


class Transport(Protocol):
    """Minimal contract for components that talk HTTP to the device API.

    Implementations never raise on HTTP-level failure; they return a body
    encoding ``{"success": false, "error": ...}`` instead.
    """

    async def get(
        self, url: str, params: Optional[Mapping[str, str]] = None
    ) -> str:
        """Issue a GET request and return the raw response body."""
        ...

    async def post_file(self, url: str, file_name: str, content: bytes) -> str:
        """Upload ``content`` as a multipart file and return the raw response body."""
        ...

    async def aclose(self) -> None:
        """Close any underlying resources."""
        ...
