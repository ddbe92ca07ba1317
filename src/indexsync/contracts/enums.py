"""Status codes, modes, and kinds used across subsystem boundaries."""

from enum import IntEnum, StrEnum


class Protocol(StrEnum):
    """Transport protocol for the indexing service.

    The value is the URL scheme used when building request URLs.
    """

    PLAIN = "http"
    SECURE = "https"


class EnvelopeCode(IntEnum):
    """Reserved status codes carried in the response envelope.

    Any code not listed here is a business-level failure.
    """

    OK = 0
    AUTH_EXPIRED = 16


class OutcomeKind(StrEnum):
    """Variant tag of a single retry attempt's outcome."""

    SUCCESS = "success"
    FATAL = "fatal"
    RETRYABLE = "retryable"


class Operation(StrEnum):
    """Document operations and the HTTP method each one uses."""

    GET = "GET"
    CREATE = "POST"
    UPDATE = "PUT"
    DELETE = "DELETE"

    @property
    def label(self) -> str:
        """Human-readable operation name used in error messages."""
        return self.name.capitalize()
