"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/engine/
clients. Settings classes are NOT re-exported here - import them from
indexsync.core.config.

Import patterns:
    from indexsync.contracts import Envelope, Document, RetryOutcome
    from indexsync.core.config import ClientSettings, RetrySettings
"""

from indexsync.contracts.documents import BatchRequest, Document, DocumentItem
from indexsync.contracts.envelope import Envelope, decode_envelope, encode_body
from indexsync.contracts.enums import EnvelopeCode, Operation, OutcomeKind, Protocol
from indexsync.contracts.errors import (
    AuthExpiredError,
    AuthFailureError,
    BusinessError,
    ConfigurationError,
    IndexSyncError,
    TransportError,
)
from indexsync.contracts.results import RetryOutcome

__all__ = [
    "AuthExpiredError",
    "AuthFailureError",
    "BatchRequest",
    "BusinessError",
    "ConfigurationError",
    "Document",
    "DocumentItem",
    "Envelope",
    "EnvelopeCode",
    "IndexSyncError",
    "Operation",
    "OutcomeKind",
    "Protocol",
    "RetryOutcome",
    "TransportError",
    "decode_envelope",
    "encode_body",
]
