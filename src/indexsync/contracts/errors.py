"""Error hierarchy for the indexing service client.

Only AuthExpiredError is retryable: the retry executor consumes it to drive
re-authentication, and it reaches the caller only once the attempt budget
is exhausted. Every other error ends the operation on first occurrence.
"""

from __future__ import annotations


class IndexSyncError(Exception):
    """Base error for the indexing service client."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class ConfigurationError(IndexSyncError):
    """Settings file is missing or fails validation."""


# Fatal errors (never retried)


class TransportError(IndexSyncError):
    """Network, connection, or serialization failure.

    Raised for any failure before a decoded envelope is available: connection
    refused, timeouts, non-JSON bodies, or bodies that are not envelopes.
    """

    def __init__(self, message: str) -> None:
        super().__init__(f"transport error: {message}")


class AuthFailureError(IndexSyncError):
    """Login itself failed.

    Covers rejected credentials, a transport failure during login, and a
    login response whose payload is not a token string.
    """

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(f"authorization failed: {message}")
        self.code = code


class BusinessError(IndexSyncError):
    """Non-zero, non-auth status code returned by the service.

    Attributes:
        operation: Operation label (e.g. "Update")
        code: Status code from the envelope
        server_message: Message from the envelope
    """

    def __init__(self, operation: str, code: int, server_message: str) -> None:
        super().__init__(f"{operation} failed, code: {code}, message: {server_message}")
        self.operation = operation
        self.code = code
        self.server_message = server_message


# Retryable errors (consumed by the retry executor)


class AuthExpiredError(IndexSyncError):
    """Service reported an expired or invalid session token (code 16)."""

    def __init__(self, message: str) -> None:
        super().__init__(f"authorization expired: {message}", retryable=True)
