"""
ipfs_fetch - resolve IPFS content through the fastest public HTTP gateway.

The package rewrites CIDs, ``ipfs://`` and ``ipns://`` addresses into gateway
URLs, probes gateways for health and latency, and fetches resources through
the fastest healthy one.

Example:
    ```python
    import asyncio
    from ipfs_fetch import IpfsClient

    async def main():
        async with IpfsClient() as client:
            await client.init()
            print(await client.read("ipns://docs.ipfs.tech"))

    asyncio.run(main())
    ```
"""

__version__ = "0.1.0"

from .client import ClientStatus, IpfsClient
from .config import ClientConfig, GlobalConfig, LoggingConfig, load_config
from .exceptions import (
    ConnectionError,
    ContentError,
    HTTPError,
    InvalidAddressError,
    IpfsFetchError,
    NetworkError,
    NotFoundError,
    ProbeError,
    ServerError,
    TimeoutError,
    TransportError,
)
from .health import HealthChecker
from .models import (
    DEFAULT_GATEWAY,
    DEFAULT_GATEWAYS,
    TEST_CID,
    AddressKind,
    GatewayNode,
    HealthResult,
    ResolvedAddress,
    ResourceResponse,
)
from .ranking import GatewayRanker, rank_gateways
from .transform import classify_address, is_cid, transform
from .transport import HttpTransport, Transport

__all__ = [
    # Client
    "IpfsClient",
    "ClientStatus",
    # Configuration
    "ClientConfig",
    "GlobalConfig",
    "LoggingConfig",
    "load_config",
    # Models
    "GatewayNode",
    "HealthResult",
    "AddressKind",
    "ResolvedAddress",
    "ResourceResponse",
    "DEFAULT_GATEWAY",
    "DEFAULT_GATEWAYS",
    "TEST_CID",
    # Gateway core
    "transform",
    "classify_address",
    "is_cid",
    "HealthChecker",
    "GatewayRanker",
    "rank_gateways",
    # Transport
    "Transport",
    "HttpTransport",
    # Exceptions
    "IpfsFetchError",
    "InvalidAddressError",
    "ProbeError",
    "TransportError",
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
    "ContentError",
    "HTTPError",
    "NotFoundError",
    "ServerError",
]
