# src/indexsync/core/__init__.py
"""Core infrastructure: Configuration and Logging."""

from indexsync.core.config import (
    ClientSettings,
    RetrySettings,
    load_settings,
    resolve_config,
)
from indexsync.core.logging import configure_logging, get_logger, token_fingerprint

__all__ = [
    "ClientSettings",
    "RetrySettings",
    "configure_logging",
    "get_logger",
    "load_settings",
    "resolve_config",
    "token_fingerprint",
]
