"""
Shared test fixtures and configuration for the ipfs_fetch test suite.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from urllib.parse import urlsplit

import pytest
from aioresponses import aioresponses

from ipfs_fetch import ClientConfig, GatewayNode
from ipfs_fetch.exceptions import ConnectionError, ErrorHandler
from ipfs_fetch.models import ResourceResponse

V0_CID = "QmUNLLsPACCz1vLxQVkXqqLX5R1X345qqfHbsf67hvA3Nn"
V1_CID = "bafybeiczsscdsbs7ffqz55asqdf3smv6klcw3gofszvwlyarci47bgf354"
DOCS_CID = "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"


@dataclass
class GatewayBehaviour:
    """How the fake transport answers for one gateway host."""

    status: int = 200
    delay: float = 0.0
    body: bytes = b"hello from ipfs"
    error: Optional[Exception] = None


@dataclass
class FakeTransport:
    """
    In-memory transport. Requests are matched to a gateway by host suffix,
    so subdomain URLs (``<cid>.ipfs.dweb.link``) hit the ``dweb.link`` entry.
    Unknown hosts fail with ConnectionError.
    """

    behaviours: Dict[str, GatewayBehaviour] = field(default_factory=dict)
    requests: List[str] = field(default_factory=list)

    def _behaviour(self, url: str) -> Optional[GatewayBehaviour]:
        netloc = urlsplit(url).netloc
        for host, behaviour in self.behaviours.items():
            if netloc == host or netloc.endswith("." + host):
                return behaviour
        return None

    async def fetch_response(self, url: str) -> ResourceResponse:
        self.requests.append(url)
        behaviour = self._behaviour(url)
        if behaviour is None:
            raise ConnectionError(f"Cannot connect to {url}", url=url)
        if behaviour.delay:
            await asyncio.sleep(behaviour.delay)
        if behaviour.error is not None:
            raise behaviour.error
        return ResourceResponse(
            url=url, status_code=behaviour.status, content=behaviour.body
        )

    async def fetch_bytes(self, url: str) -> bytes:
        response = await self.fetch_response(url)
        if not response.is_success:
            raise ErrorHandler.handle_http_status_error(
                response.status_code, f"HTTP {response.status_code}", url
            )
        return response.content

    def requests_to(self, host: str) -> List[str]:
        return [
            url for url in self.requests
            if urlsplit(url).netloc == host or urlsplit(url).netloc.endswith("." + host)
        ]


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Transport where both default gateways answer immediately with 200."""
    return FakeTransport(
        behaviours={
            "dweb.link": GatewayBehaviour(),
            "cf-ipfs.com": GatewayBehaviour(),
        }
    )


@pytest.fixture
def remote_node() -> GatewayNode:
    return GatewayNode(host="dweb.link", remote=True)


@pytest.fixture
def local_node() -> GatewayNode:
    return GatewayNode(host="127.0.0.1:8080", remote=False)


@pytest.fixture
def test_config() -> ClientConfig:
    """Client configuration with short timeouts for tests."""
    return ClientConfig(total_timeout=5.0, connect_timeout=2.0)


@pytest.fixture
def mock_aiohttp():
    """Mock aiohttp responses for testing."""
    with aioresponses() as m:
        yield m
