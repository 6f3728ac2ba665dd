"""
Exception hierarchy for IPFS gateway resolution and fetching.

This module provides custom exceptions and conversion helpers that turn
aiohttp failures and HTTP status codes into the library's own error types.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import aiohttp


class IpfsFetchError(Exception):
    """
    Base exception for all ipfs_fetch operations.

    Attributes:
        message: Human-readable error message
        url: URL that caused the error (if applicable)
        details: Additional error details as keyword arguments
    """

    def __init__(self, message: str, url: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message
        self.url = url
        self.details = kwargs


class InvalidAddressError(IpfsFetchError):
    """
    Raised when an address cannot be classified or rewritten into a gateway URL.

    Attributes:
        address: The offending input, exactly as the caller passed it
    """

    def __init__(self, message: str, address: Any) -> None:
        super().__init__(message)
        self.address = address


class ProbeError(IpfsFetchError):
    """Raised inside the health checker when a gateway probe does not succeed."""

    def __init__(
        self, message: str, url: Optional[str] = None, status_code: Optional[int] = None
    ) -> None:
        super().__init__(message, url)
        self.status_code = status_code


class TransportError(IpfsFetchError):
    """Base class for failures while fetching a resource from a gateway."""

    pass


class NetworkError(TransportError):
    """Raised for DNS failures and other low-level network problems."""

    pass


class ConnectionError(TransportError):
    """Raised when the gateway cannot be connected to."""

    pass


class TimeoutError(TransportError):
    """
    Raised when a request times out.

    Attributes:
        timeout_value: The timeout value that was exceeded (in seconds)
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timeout_value: Optional[float] = None,
    ) -> None:
        super().__init__(message, url)
        self.timeout_value = timeout_value


class ContentError(TransportError):
    """Raised when the response body cannot be read."""

    pass


class HTTPError(TransportError):
    """Raised when a gateway answers with a non-success status code."""

    def __init__(
        self,
        message: str,
        status_code: int,
        url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(message, url)
        self.status_code = status_code
        self.headers = headers or {}


class NotFoundError(HTTPError):
    """Raised when the gateway cannot find the content (404)."""

    pass


class ServerError(HTTPError):
    """Raised for gateway-side errors (5xx)."""

    pass


class ErrorHandler:
    """Converts aiohttp exceptions and status codes into TransportError subclasses."""

    @staticmethod
    def handle_aiohttp_error(
        error: Exception, url: Optional[str] = None
    ) -> TransportError:
        """
        Convert an aiohttp (or asyncio) exception to a TransportError subclass.

        Args:
            error: The original exception
            url: The URL that caused the error

        Returns:
            Appropriate TransportError subclass
        """
        if isinstance(error, TransportError):
            return error

        if isinstance(error, asyncio.TimeoutError):
            return TimeoutError(f"Request timed out: {error}", url=url)

        elif isinstance(error, aiohttp.ClientResponseError):
            return ErrorHandler.handle_http_status_error(
                error.status, error.message, url, getattr(error, "headers", None)
            )

        elif isinstance(error, aiohttp.ClientPayloadError):
            return ContentError(f"Payload error: {error}", url=url)

        elif isinstance(error, aiohttp.ClientConnectorError):
            return ConnectionError(f"Connector error: {error}", url=url)

        elif isinstance(error, aiohttp.ClientConnectionError):
            return ConnectionError(f"Connection error: {error}", url=url)

        else:
            return NetworkError(f"Unexpected network error: {error}", url=url)

    @staticmethod
    def handle_http_status_error(
        status_code: int,
        message: str,
        url: Optional[str] = None,
        headers: Optional[Any] = None,
    ) -> HTTPError:
        """
        Create the HTTPError subclass matching a status code.

        Args:
            status_code: HTTP status code
            message: Error message
            url: The URL that caused the error
            headers: Response headers

        Returns:
            Appropriate HTTPError subclass
        """
        header_dict = dict(headers) if headers else {}

        if status_code == 404:
            return NotFoundError(
                f"Resource not found: {message}", status_code, url, header_dict
            )

        elif 500 <= status_code < 600:
            return ServerError(
                f"Server error: {message}", status_code, url, header_dict
            )

        else:
            return HTTPError(message, status_code, url, header_dict)
