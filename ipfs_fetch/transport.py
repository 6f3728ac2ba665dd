"""
HTTP transport used to fetch resources from gateways.

The gateway core only needs two coroutines, ``fetch_bytes`` and
``fetch_response``, described by :class:`Transport`. :class:`HttpTransport`
implements them on top of an aiohttp ``ClientSession``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional, Protocol

import aiohttp
from aiohttp import ClientSession, ClientTimeout, TCPConnector

from .config.models import ClientConfig
from .exceptions import ErrorHandler, TransportError
from .models import ResourceResponse

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Capability to retrieve a resource at an HTTP(S) URL."""

    async def fetch_bytes(self, url: str) -> bytes:
        """Return the whole body, raising TransportError on failure or non-2xx."""
        ...

    async def fetch_response(self, url: str) -> ResourceResponse:
        """Return status, headers and body; raise TransportError on network failure."""
        ...


class HttpTransport:
    """
    aiohttp-backed transport.

    No retries happen here: a failed request surfaces immediately as a
    :class:`TransportError` subclass.

    Usage:
        ```python
        async with HttpTransport(ClientConfig(total_timeout=5.0)) as transport:
            data = await transport.fetch_bytes("https://dweb.link/ipns/docs.ipfs.tech")
        ```
    """

    def __init__(self, config: Optional[ClientConfig] = None):
        self.config = config or ClientConfig()
        self._session: Optional[ClientSession] = None

    async def __aenter__(self) -> HttpTransport:
        await self._create_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _create_session(self) -> None:
        """
        Create the aiohttp session. Idempotent.
        """
        if self._session is not None:
            return

        timeout = ClientTimeout(
            total=self.config.total_timeout,
            connect=self.config.connect_timeout,
        )
        connector = TCPConnector(
            ssl=self.config.verify_ssl,
            enable_cleanup_closed=True,
        )
        self._session = ClientSession(
            timeout=timeout,
            connector=connector,
            headers={"User-Agent": self.config.user_agent},
            raise_for_status=False,  # status codes are handled by the callers
        )

    async def close(self) -> None:
        """Close the session and cleanup resources."""
        if self._session:
            await self._session.close()
            self._session = None

    async def fetch_response(self, url: str) -> ResourceResponse:
        """
        GET a URL and return the full response.

        Args:
            url: URL to fetch

        Returns:
            ResourceResponse with status code, headers and body

        Raises:
            TransportError: On timeouts, DNS or connection failures
        """
        if self._session is None:
            await self._create_session()

        start_time = time.time()
        try:
            async with self._session.get(url, allow_redirects=True) as response:
                content = await response.read()
                result = ResourceResponse(
                    url=str(response.url),
                    status_code=response.status,
                    headers=dict(response.headers),
                    content=content,
                    response_time=time.time() - start_time,
                )
        except TransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise ErrorHandler.handle_aiohttp_error(e, url) from e

        logger.debug(
            f"GET {url} -> {result.status_code} "
            f"({result.content_length} bytes, {result.response_time:.3f}s)"
        )
        return result

    async def fetch_bytes(self, url: str) -> bytes:
        """
        GET a URL and return its body.

        Raises:
            HTTPError: If the gateway answers with a non-2xx status
            TransportError: On timeouts, DNS or connection failures
        """
        response = await self.fetch_response(url)
        if not response.is_success:
            raise ErrorHandler.handle_http_status_error(
                response.status_code,
                f"HTTP {response.status_code} for {url}",
                url,
                response.headers,
            )
        return response.content
