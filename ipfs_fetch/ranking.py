"""
Gateway ranking.

Orders probed gateways fastest first, drops unhealthy ones and guarantees a
usable gateway even when every probe failed.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Tuple

from .models import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_CHECK_INTERVAL_MS,
    DEFAULT_GATEWAY,
    GatewayNode,
)
from .utils.cache import TTLCache

logger = logging.getLogger(__name__)


def unique_healthy(nodes: Iterable[GatewayNode]) -> Tuple[GatewayNode, ...]:
    """Deduplicate by host (first occurrence wins), then keep healthy nodes."""
    seen = set()
    unique: List[GatewayNode] = []
    for node in nodes:
        if node.host in seen:
            continue
        seen.add(node.host)
        unique.append(node)
    return tuple(node for node in unique if node.healthy)


def _speed_key(node: GatewayNode) -> Tuple[bool, int]:
    # Nodes that were never timed sort after every measured node
    return (node.speed is None, node.speed or 0)


def rank_gateways(
    nodes: Iterable[GatewayNode], default_gateway: GatewayNode = DEFAULT_GATEWAY
) -> Tuple[GatewayNode, ...]:
    """
    Rank gateways by ascending speed.

    Args:
        nodes: Probed gateways, possibly with duplicates and unhealthy entries
        default_gateway: Returned alone when no healthy gateway remains

    Returns:
        Non-empty tuple of unique, healthy gateways, fastest first
    """
    ranked = tuple(sorted(unique_healthy(nodes), key=_speed_key))
    if not ranked:
        logger.warning(
            f"No healthy gateway found, falling back to {default_gateway.host}"
        )
        return (default_gateway,)
    return ranked


class GatewayRanker:
    """
    Memoising wrapper around :func:`rank_gateways`.

    Identical probe outcomes within one check interval reuse the previous
    ranking instead of sorting again.
    """

    def __init__(
        self,
        ttl_ms: int = DEFAULT_CHECK_INTERVAL_MS,
        cache_size: int = DEFAULT_CACHE_SIZE,
        default_gateway: GatewayNode = DEFAULT_GATEWAY,
    ):
        self.default_gateway = default_gateway
        self._cache: TTLCache[Tuple[GatewayNode, ...]] = TTLCache(
            ttl_seconds=ttl_ms / 1000, max_size=cache_size
        )

    def rank(self, nodes: Iterable[GatewayNode]) -> Tuple[GatewayNode, ...]:
        """Rank ``nodes``; see :func:`rank_gateways`."""
        candidates = unique_healthy(nodes)
        return self._cache.get_or_compute(
            candidates, lambda: rank_gateways(candidates, self.default_gateway)
        )

    def clear(self) -> None:
        self._cache.clear()
