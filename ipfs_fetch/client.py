"""
IPFS gateway client.

This module provides the IpfsClient class, which picks the fastest healthy
public gateway and fetches IPFS/IPNS resources through it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Iterable, Optional, Tuple

from .config.models import ClientConfig
from .health import HealthChecker
from .models import GatewayNode, ResourceResponse
from .ranking import GatewayRanker
from .transform import transform
from .transport import HttpTransport, Transport

logger = logging.getLogger(__name__)


class ClientStatus(str, Enum):
    """Lifecycle state of an IpfsClient."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"


class IpfsClient:
    """
    Lightweight IPFS client reading content through public HTTP gateways.

    ``init()`` probes the configured gateways, ranks them by latency and
    selects the fastest healthy one. Fetch operations rewrite addresses
    against that gateway and hand the URL to the transport. A failed fetch is
    raised to the caller as is; the client never retries or falls over to
    another gateway.

    Usage:
        ```python
        import asyncio
        from ipfs_fetch import IpfsClient

        async def main():
            async with IpfsClient() as client:
                await client.init()
                data = await client.read("ipfs://bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi")
                print(client.chosen_gateway.host, len(data))

        asyncio.run(main())
        ```

    Caller-supplied ``gateways`` and ``chosen_gateway`` always take precedence
    over discovery: ``init()`` leaves seeded values untouched.

    Thread Safety:
        Instances are not thread-safe. Do not call read/open/seek while
        ``init()`` is running on the same instance.
    """

    def __init__(
        self,
        gateways: Optional[Iterable[GatewayNode]] = None,
        chosen_gateway: Optional[GatewayNode] = None,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
    ):
        """
        Args:
            gateways: Pre-ranked gateway list; disables discovery when given
            chosen_gateway: Gateway to use for every fetch; disables selection
            config: Client configuration (gateway seed list, intervals, timeouts)
            transport: Fetch capability; an HttpTransport is created when omitted
        """
        self.config = config or ClientConfig()

        self._own_transport = transport is None
        self.transport: Transport = transport or HttpTransport(self.config)

        # Per-instance copy of the seed list; the config is never mutated
        self._candidates: Tuple[GatewayNode, ...] = tuple(self.config.gateways)
        self.default_gateway = self._candidates[0]

        self._gateways_seeded = gateways is not None
        self._chosen_seeded = chosen_gateway is not None
        self.gateways: Tuple[GatewayNode, ...] = tuple(gateways or ())
        self.chosen_gateway: Optional[GatewayNode] = chosen_gateway
        self.status = ClientStatus.UNINITIALIZED

        self.health_checker = HealthChecker(
            self.transport,
            check_interval_ms=self.config.gateway_check_interval,
            cache_size=self.config.cache_size,
            concurrency=self.config.probe_concurrency,
            probe_cid=self.config.probe_cid,
        )
        self.ranker = GatewayRanker(
            ttl_ms=self.config.gateway_check_interval,
            cache_size=self.config.cache_size,
            default_gateway=self.default_gateway,
        )

    @property
    def gateway_check_interval(self) -> int:
        """Milliseconds before cached health results expire."""
        return self.config.gateway_check_interval

    @property
    def is_ready(self) -> bool:
        return self.status == ClientStatus.READY

    async def __aenter__(self) -> IpfsClient:
        if isinstance(self.transport, HttpTransport):
            await self.transport._create_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the transport if this client created it."""
        if self._own_transport and isinstance(self.transport, HttpTransport):
            await self.transport.close()

    async def init(self) -> None:
        """
        Discover and rank gateways, then choose the fastest one.

        Probing runs to completion before anything is assigned. Cached probe
        results are reused within the check interval, so calling ``init()``
        again is cheap until they expire.
        """
        if not self._gateways_seeded:
            probed = await self.health_checker.check_all(self._candidates)
            ranked = self.ranker.rank(probed)
            if self._chosen_seeded:
                # Keep the chosen gateway at the head of the list
                ranked = (self.chosen_gateway,) + tuple(
                    node for node in ranked if node.host != self.chosen_gateway.host
                )
            self.gateways = ranked
            logger.info(
                "Ranked gateways: "
                + ", ".join(f"{node.host} ({node.speed} ms)" for node in ranked)
            )

        if not self.gateways:
            fallback = self.chosen_gateway or self.default_gateway
            logger.warning(f"No gateways given, falling back to {fallback.host}")
            self.gateways = (fallback,)

        if not self._chosen_seeded:
            self.chosen_gateway = self.gateways[0]
            logger.info(f"Using gateway {self.chosen_gateway.host}")

        self.status = ClientStatus.READY

    async def _ensure_ready(self) -> GatewayNode:
        if not self.is_ready:
            await self.init()
        return self.chosen_gateway

    def url_for(self, address: str) -> str:
        """
        Rewrite ``address`` against the chosen gateway.

        Before ``init()`` the configured default gateway is used.

        Raises:
            InvalidAddressError: If the address cannot be rewritten
        """
        return transform(address, self.chosen_gateway or self.default_gateway)

    async def read(self, address: str) -> bytes:
        """
        Fetch a whole resource.

        Args:
            address: CID, ipfs:// or ipns:// URI, DNSLink name or HTTP(S) URL

        Returns:
            Response body

        Raises:
            InvalidAddressError: If the address cannot be rewritten
            TransportError: If the fetch fails or the gateway returns non-2xx
        """
        node = await self._ensure_ready()
        url = transform(address, node)
        logger.debug(f"Reading {address} from {url}")
        return await self.transport.fetch_bytes(url)

    async def open(self, address: str) -> ResourceResponse:
        """
        Fetch a resource and return the full response, whatever its status.

        Raises:
            InvalidAddressError: If the address cannot be rewritten
            TransportError: If the request itself fails
        """
        node = await self._ensure_ready()
        url = transform(address, node)
        logger.debug(f"Opening {address} at {url}")
        return await self.transport.fetch_response(url)

    async def seek(self, address: str) -> bytes:
        """Fetch a resource. Range requests are not supported, so this reads it whole."""
        return await self.read(address)
