"""
Configuration models for ipfs_fetch.

This module defines all configuration data models with validation and defaults.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_CHECK_INTERVAL_MS,
    DEFAULT_GATEWAYS,
    DEFAULT_PROBE_CONCURRENCY,
    TEST_CID,
    GatewayNode,
)


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BaseConfig(BaseModel):
    """Base configuration class with common validation settings."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")


class LoggingConfig(BaseConfig):
    """Logging configuration."""

    level: LogLevel = Field(default=LogLevel.WARNING, description="Default logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    file_path: Optional[Path] = Field(default=None, description="Log file path")
    enable_structured: bool = Field(
        default=False, description="Enable structured JSON logging"
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


class ClientConfig(BaseConfig):
    """
    Configuration for :class:`ipfs_fetch.IpfsClient`.

    Gateway settings control discovery and ranking; timeout and header
    settings are passed to the HTTP transport.

    Example:
        ```python
        config = ClientConfig(
            gateways=[GatewayNode(host="127.0.0.1:8080", remote=False)],
            gateway_check_interval=30_000,
            total_timeout=10.0,
        )
        ```
    """

    # Gateway discovery
    gateways: List[GatewayNode] = Field(
        default_factory=lambda: list(DEFAULT_GATEWAYS),
        min_length=1,
        description="Candidate gateways probed by init(). The first entry is the "
        "fallback used when every probe fails.",
    )
    gateway_check_interval: int = Field(
        default=DEFAULT_CHECK_INTERVAL_MS,
        gt=0,
        description="Milliseconds a probe result or ranking stays cached.",
    )
    cache_size: int = Field(
        default=DEFAULT_CACHE_SIZE,
        ge=1,
        description="Maximum entries in each memoisation cache.",
    )
    probe_concurrency: int = Field(
        default=DEFAULT_PROBE_CONCURRENCY,
        ge=1,
        le=64,
        description="Maximum number of gateway probes in flight at once.",
    )
    probe_cid: str = Field(
        default=TEST_CID,
        min_length=1,
        description="Content identifier fetched to check gateway health.",
    )

    # Transport
    total_timeout: float = Field(
        default=30.0, gt=0, description="Total request timeout in seconds"
    )
    connect_timeout: float = Field(
        default=10.0, gt=0, description="Connection timeout in seconds"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    user_agent: str = Field(
        default="ipfs-fetch/0.1.0", description="User-Agent header for gateway requests"
    )

    @field_validator("gateways")
    @classmethod
    def validate_unique_hosts(cls, v: List[GatewayNode]) -> List[GatewayNode]:
        hosts = [node.host for node in v]
        if len(hosts) != len(set(hosts)):
            raise ValueError("Gateway hosts must be unique")
        return v

    @property
    def check_interval_seconds(self) -> float:
        return self.gateway_check_interval / 1000

    @property
    def default_gateway(self) -> GatewayNode:
        return self.gateways[0]


class GlobalConfig(BaseConfig):
    """Top-level configuration combining client and logging settings."""

    client: ClientConfig = Field(default_factory=ClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
