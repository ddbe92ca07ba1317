"""Retry engine shared by every document operation."""

from indexsync.engine.retry import RetryConfig, RetryExecutor

__all__ = ["RetryConfig", "RetryExecutor"]
