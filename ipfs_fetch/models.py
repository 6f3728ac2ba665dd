"""
Data models for gateways, probe results, resolved addresses and responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GatewayNode(BaseModel):
    """
    One candidate HTTP gateway.

    Nodes are immutable and hashable. A probe never edits a node in place;
    it produces a new node via :meth:`with_status`.

    Attributes:
        host: Gateway host, optionally with a port (``dweb.link``, ``127.0.0.1:8080``)
        remote: True for public gateways (HTTPS, subdomain addressing),
                False for a locally run gateway (HTTP, path addressing)
        healthy: Last known reachability
        speed: Round trip of the last successful probe in milliseconds
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = Field(min_length=1, description="Gateway host name")
    remote: bool = Field(default=True, description="Publicly hosted gateway")
    healthy: bool = Field(default=True, description="Last known reachability")
    speed: Optional[int] = Field(
        default=None, ge=0, description="Last measured round trip in milliseconds"
    )

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Gateway host must not be empty")
        if "://" in v or "/" in v:
            raise ValueError(f"Gateway host must be a bare host name, got {v!r}")
        return v

    def with_status(self, result: HealthResult) -> GatewayNode:
        """Return a copy carrying the probe result's health and speed."""
        return self.model_copy(update={"healthy": result.healthy, "speed": result.speed})


@dataclass(frozen=True)
class HealthResult:
    """Outcome of one gateway probe."""

    healthy: bool
    speed: Optional[int] = None


class AddressKind(str, Enum):
    """How an input address was classified."""

    RAW_IDENTIFIER = "raw_identifier"  # bare CID, prefixed with ipfs://
    IPFS_URI = "ipfs_uri"
    IPNS_URI = "ipns_uri"  # includes bare names assumed to be IPNS/DNSLink
    ABSOLUTE_HTTP_URL = "absolute_http_url"


@dataclass(frozen=True)
class ResolvedAddress:
    """
    A classified and decomposed address.

    Attributes:
        kind: Classification result
        original: The input string
        uri: The normalised address (``ipfs://...``, ``ipns://...`` or the HTTP URL)
        protocol: ``ipfs``, ``ipns`` or the HTTP scheme
        hostname: CID or name, with its original letter case
        path: Path component (may be empty)
        query: Query string without the leading ``?`` (may be empty)
    """

    kind: AddressKind
    original: str
    uri: str
    protocol: str
    hostname: str = ""
    path: str = ""
    query: str = ""

    @property
    def is_http(self) -> bool:
        return self.kind == AddressKind.ABSOLUTE_HTTP_URL


@dataclass
class ResourceResponse:
    """Response returned by a transport for one gateway request."""

    url: str
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""
    response_time: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if the response has a 2xx status code."""
        return 200 <= self.status_code < 300

    @property
    def content_length(self) -> int:
        return len(self.content)

    def text(self, encoding: str = "utf-8") -> str:
        """Decode the body, replacing undecodable bytes."""
        return self.content.decode(encoding, errors="replace")


# Canonical defaults. These are shared, immutable values; clients copy them.
DEFAULT_GATEWAYS = (
    GatewayNode(host="dweb.link", remote=True),
    GatewayNode(host="cf-ipfs.com", remote=True),
)
DEFAULT_GATEWAY = DEFAULT_GATEWAYS[0]

# CIDv1 of the empty UnixFS directory (QmUNLLsPACCz1vLxQVkXqqLX5R1X345qqfHbsf67hvA3Nn),
# which every public gateway can serve.
TEST_CID = "bafybeiczsscdsbs7ffqz55asqdf3smv6klcw3gofszvwlyarci47bgf354"

DEFAULT_CHECK_INTERVAL_MS = 10_000
DEFAULT_CACHE_SIZE = 100
DEFAULT_PROBE_CONCURRENCY = 6
