"""
Gateway health checking.

A gateway is probed by fetching a small, widely replicated object through it
and timing the round trip. Probe failures never escape this module: they
become ``HealthResult(healthy=False)`` and only influence ranking.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, Hashable, Iterable, List, Tuple

from .exceptions import ProbeError
from .models import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_CHECK_INTERVAL_MS,
    DEFAULT_PROBE_CONCURRENCY,
    TEST_CID,
    GatewayNode,
    HealthResult,
)
from .transform import transform
from .transport import Transport
from .utils.cache import TTLCache

logger = logging.getLogger(__name__)

UNHEALTHY = HealthResult(healthy=False, speed=None)


class HealthChecker:
    """
    Probes gateways and memoises the results for one check interval.

    Results are keyed by ``(remote, host)``. Concurrent checks of the same
    gateway share a single in-flight probe.

    Args:
        transport: Fetch capability used for probes
        check_interval_ms: How long a probe result stays cached
        cache_size: Maximum number of cached results (LRU eviction)
        concurrency: Maximum number of probes in flight in :meth:`check_all`
        probe_cid: Identifier fetched to test a gateway
    """

    def __init__(
        self,
        transport: Transport,
        check_interval_ms: int = DEFAULT_CHECK_INTERVAL_MS,
        cache_size: int = DEFAULT_CACHE_SIZE,
        concurrency: int = DEFAULT_PROBE_CONCURRENCY,
        probe_cid: str = TEST_CID,
    ):
        self.transport = transport
        self.concurrency = concurrency
        self.probe_cid = probe_cid
        self._cache: TTLCache[HealthResult] = TTLCache(
            ttl_seconds=check_interval_ms / 1000, max_size=cache_size
        )
        self._in_flight: Dict[Hashable, asyncio.Future] = {}

    @staticmethod
    def cache_key(node: GatewayNode) -> Tuple[bool, str]:
        return (node.remote, node.host)

    def probe_url(self, node: GatewayNode) -> str:
        """URL of the probe object on ``node``, with a cache-busting timestamp."""
        now = int(time.time() * 1000)
        return transform(f"ipfs://{self.probe_cid}?now={now}", node)

    async def _probe(self, node: GatewayNode) -> HealthResult:
        url = self.probe_url(node)
        start = time.monotonic()
        response = await self.transport.fetch_response(url)
        if response.status_code != 200:
            raise ProbeError(
                f"Probe returned HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        return HealthResult(healthy=True, speed=int((time.monotonic() - start) * 1000))

    async def check(self, node: GatewayNode) -> HealthResult:
        """
        Check one gateway.

        Args:
            node: Gateway to check

        Returns:
            HealthResult; cached results are returned without a network call
        """
        key = self.cache_key(node)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Health cache hit for {node.host}")
            return cached

        pending = self._in_flight.get(key)
        if pending is not None:
            return await asyncio.shield(pending)

        future = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            try:
                result = await self._probe(node)
                logger.debug(f"Gateway {node.host} healthy ({result.speed} ms)")
            except Exception as e:
                # Any probe failure only marks the gateway unhealthy
                logger.debug(f"Gateway {node.host} unhealthy: {e!r}")
                result = UNHEALTHY
            self._cache.put(key, result)
            future.set_result(result)
            return result
        except asyncio.CancelledError:
            future.cancel()
            raise
        finally:
            self._in_flight.pop(key, None)

    async def check_node(self, node: GatewayNode) -> GatewayNode:
        """Return ``node`` updated with its current health and speed."""
        return node.with_status(await self.check(node))

    async def check_all(self, nodes: Iterable[GatewayNode]) -> List[GatewayNode]:
        """
        Check several gateways with bounded concurrency.

        Args:
            nodes: Gateways to check

        Returns:
            Updated nodes in input order, once every probe has finished
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded_check(node: GatewayNode) -> GatewayNode:
            async with semaphore:
                return await self.check_node(node)

        return list(await asyncio.gather(*(bounded_check(node) for node in nodes)))

    def clear(self) -> None:
        """Forget all cached probe results."""
        self._cache.clear()
