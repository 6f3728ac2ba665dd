"""
Logging manager for ipfs_fetch.

This module provides centralized logging configuration for the CLI and for
applications that want the library's default handlers.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, Optional

from ..config.models import LoggingConfig, LogLevel
from .formatters import ColoredFormatter, StructuredFormatter

PACKAGE_LOGGER = "ipfs_fetch"


class LoggingManager:
    """
    Configures handlers on the ``ipfs_fetch`` logger.

    Only the package logger is touched; the root logger and handlers
    installed by the host application are left alone.
    """

    def __init__(self) -> None:
        """Initialize logging manager."""
        self._configured = False
        self._handlers: Dict[str, logging.Handler] = {}

    def setup_logging(self, config: LoggingConfig) -> None:
        """
        Setup logging based on configuration.

        Args:
            config: Logging configuration
        """
        if self._configured:
            self.cleanup()

        logger = logging.getLogger(PACKAGE_LOGGER)
        logger.setLevel(getattr(logging, LogLevel(config.level).value))

        self._setup_console_handler(config)
        if config.file_path:
            self._setup_file_handler(config)

        self._configured = True
        logger.debug("Logging system configured")

    def _setup_console_handler(self, config: LoggingConfig) -> None:
        """Setup console logging handler on stderr."""
        handler = logging.StreamHandler(sys.stderr)

        formatter: logging.Formatter
        if config.enable_structured:
            formatter = StructuredFormatter()
        else:
            formatter = ColoredFormatter(config.format)

        handler.setFormatter(formatter)
        self.add_handler("console", handler)

    def _setup_file_handler(self, config: LoggingConfig) -> None:
        """Setup file logging handler."""
        log_path = Path(str(config.file_path))
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.FileHandler(str(log_path), encoding="utf-8")

        formatter: logging.Formatter
        if config.enable_structured:
            formatter = StructuredFormatter()
        else:
            formatter = logging.Formatter(config.format)

        handler.setFormatter(formatter)
        self.add_handler("file", handler)

    def set_level(self, level: LogLevel) -> None:
        """Set the package logging level."""
        logging.getLogger(PACKAGE_LOGGER).setLevel(getattr(logging, LogLevel(level).value))

    def add_handler(self, name: str, handler: logging.Handler) -> None:
        """
        Add a named handler to the package logger.

        Args:
            name: Handler name
            handler: Logging handler
        """
        logging.getLogger(PACKAGE_LOGGER).addHandler(handler)
        self._handlers[name] = handler

    def remove_handler(self, name: str) -> None:
        """Remove a named handler."""
        handler = self._handlers.pop(name, None)
        if handler is not None:
            logging.getLogger(PACKAGE_LOGGER).removeHandler(handler)
            handler.close()

    def cleanup(self) -> None:
        """Remove and close every handler this manager installed."""
        for name in list(self._handlers):
            self.remove_handler(name)
        self._configured = False

    def is_configured(self) -> bool:
        """Check if logging is configured."""
        return self._configured


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Setup logging with configuration.

    Args:
        config: Logging configuration (defaults when omitted)
    """
    _logging_manager.setup_logging(config or LoggingConfig())


def cleanup_logging() -> None:
    """Cleanup logging system."""
    _logging_manager.cleanup()
