"""
Static File Proxy
=================

Pass-through of static asset requests to the application origin.

The upstream response is streamed to the client as it arrives, with its
status code and end-to-end headers. Nothing is cached or retried.
"""

from typing import Optional, Any
import asyncio

import aiohttp
from fastapi.responses import Response, StreamingResponse
from starlette.background import BackgroundTask

from prerender.config.logging import PrerenderLogger
from prerender.config.settings import Settings
from prerender.utils.responses import internal_server_error
from prerender.utils.urls import join_app_url

HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}


async def close_upstream(upstream: aiohttp.ClientResponse) -> None:
    upstream.close()


class StaticFileProxy:
    """Streams static files from ``settings.app_url``."""

    def __init__(self, settings: Settings, logger: PrerenderLogger):
        self.settings = settings
        self.logger = logger
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            limit = self.settings.static_timeout or None
            timeout = aiohttp.ClientTimeout(total=None, sock_connect=limit, sock_read=limit)
            # Bodies are relayed byte for byte, including any content encoding
            self._session = aiohttp.ClientSession(timeout=timeout, auto_decompress=False)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def serve(self, url: str, user: str = "") -> Response:
        """
        Proxy a static file request.

        Args:
            url: Normalized request URL, starting with ``/``
            user: Client identity for error logging

        Returns:
            The streamed upstream response, or a 500 when serving files is
            disabled or the upstream cannot be reached
        """
        if not self.settings.serve_files:
            return internal_server_error()

        target = join_app_url(self.settings.app_url, url)
        try:
            session = await self._get_session()
            upstream = await session.get(target, allow_redirects=False)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.log("error", f"{user} -> Failed to fetch file {target}: {e}")
            return internal_server_error()

        return StreamingResponse(
            upstream.content.iter_any(),
            status_code=upstream.status,
            headers=self.forward_headers(upstream.headers),
            background=BackgroundTask(close_upstream, upstream),
        )

    @staticmethod
    def forward_headers(headers: Any) -> dict[str, str]:
        """Copy end-to-end upstream headers and ask for the connection to close."""
        forwarded = {
            name: value for name, value in headers.items() if name.lower() not in HOP_BY_HOP_HEADERS
        }
        forwarded["Connection"] = "close"
        return forwarded
