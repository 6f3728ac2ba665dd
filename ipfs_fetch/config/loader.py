"""
Configuration loader for ipfs_fetch.

This module handles loading configuration from configuration files and
environment variables.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from .models import GlobalConfig


class ConfigLoader:
    """Configuration loader with support for files and environment variables."""

    def __init__(self) -> None:
        """Initialize configuration loader."""
        self.config_paths = [
            Path("ipfs_fetch.yaml"),
            Path("ipfs_fetch.yml"),
            Path("ipfs_fetch.json"),
            Path.home() / ".ipfs_fetch" / "config.yaml",
            Path.home() / ".ipfs_fetch" / "config.yml",
            Path.home() / ".ipfs_fetch" / "config.json",
        ]

        # Environment variable prefix
        self.env_prefix = "IPFS_FETCH_"

    def load_config(
        self, config_file: Optional[Union[str, Path]] = None
    ) -> GlobalConfig:
        """
        Load configuration from all available sources.

        Environment variables override values from the file.

        Args:
            config_file: Specific config file to load. When omitted the
                         default search paths are tried.

        Returns:
            GlobalConfig instance with merged configuration

        Raises:
            ValueError: If a file cannot be parsed or the merged values are invalid
        """
        config_data: Dict[str, Any] = {}

        file_config = self._load_from_file(config_file)
        if file_config:
            config_data.update(file_config)

        env_config = self._load_from_environment()
        if env_config:
            config_data = self._deep_merge(config_data, env_config)

        try:
            return GlobalConfig(**config_data)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

    def _load_from_file(
        self, config_file: Optional[Union[str, Path]] = None
    ) -> Optional[Dict[str, Any]]:
        """Load configuration from file."""
        if config_file:
            config_path = Path(config_file)
            if not config_path.exists():
                raise ValueError(f"Config file not found: {config_path}")
            return self._parse_config_file(config_path)

        for config_path in self.config_paths:
            if config_path.exists():
                return self._parse_config_file(config_path)

        return None

    def _parse_config_file(self, config_path: Path) -> Dict[str, Any]:
        """Parse configuration file based on extension."""
        suffix = config_path.suffix.lower()
        if suffix not in (".yaml", ".yml", ".json"):
            raise ValueError(f"Unsupported config file format: {config_path.suffix}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                if suffix == ".json":
                    return json.load(f) or {}
                return yaml.safe_load(f) or {}
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ValueError(f"Failed to parse config file {config_path}: {e}") from e

    def _load_from_environment(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        env_mappings = {
            f"{self.env_prefix}LOG_LEVEL": ("logging", "level"),
            f"{self.env_prefix}LOG_FILE": ("logging", "file_path"),
            f"{self.env_prefix}CHECK_INTERVAL": ("client", "gateway_check_interval"),
            f"{self.env_prefix}PROBE_CONCURRENCY": ("client", "probe_concurrency"),
            f"{self.env_prefix}TOTAL_TIMEOUT": ("client", "total_timeout"),
            f"{self.env_prefix}VERIFY_SSL": ("client", "verify_ssl"),
            f"{self.env_prefix}USER_AGENT": ("client", "user_agent"),
        }

        for env_var, config_path in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                converted_value = self._convert_env_value(value)

                current = config
                for key in config_path[:-1]:
                    current = current.setdefault(key, {})
                current[config_path[-1]] = converted_value

        gateways = os.getenv(f"{self.env_prefix}GATEWAYS")
        if gateways:
            config.setdefault("client", {})["gateways"] = [
                {"host": host.strip()} for host in gateways.split(",") if host.strip()
            ]

        return config

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable string to appropriate type."""
        lower = value.lower()
        if lower in ("true", "yes", "on"):
            return True
        if lower in ("false", "no", "off"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        return value

    def _deep_merge(
        self, base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def load_config(config_file: Optional[Union[str, Path]] = None) -> GlobalConfig:
    """Load configuration using a default :class:`ConfigLoader`."""
    return ConfigLoader().load_config(config_file)
