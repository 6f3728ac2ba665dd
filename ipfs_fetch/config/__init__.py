"""
Configuration management for ipfs_fetch.
"""

from .loader import ConfigLoader, load_config
from .models import BaseConfig, ClientConfig, GlobalConfig, LoggingConfig, LogLevel

__all__ = [
    "BaseConfig",
    "ClientConfig",
    "ConfigLoader",
    "GlobalConfig",
    "LoggingConfig",
    "LogLevel",
    "load_config",
]
