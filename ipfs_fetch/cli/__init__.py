"""
Command-line interface for ipfs_fetch.
"""

from .main import cli, main

__all__ = ["cli", "main"]
