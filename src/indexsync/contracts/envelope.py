# src/indexsync/contracts/envelope.py
"""Envelope codec for the indexing service wire format.

Every response from the service is a JSON object of the form
``{"Code": int, "Message": str, "Data": any}``. Keys are matched
case-insensitively (exact spelling wins) and absent keys take zero values,
so ``{"Code": 16}`` decodes to ``Envelope(code=16, message="", data=None)``.

Request bodies are plain JSON documents; ``None`` encodes to an empty body.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from indexsync.contracts.enums import EnvelopeCode
from indexsync.contracts.errors import TransportError

_WIRE_KEYS = ("Code", "Message", "Data")


@dataclass(frozen=True, slots=True)
class Envelope:
    """Uniform three-field response wrapper."""

    code: int
    message: str = ""
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.code == EnvelopeCode.OK

    @property
    def auth_expired(self) -> bool:
        return self.code == EnvelopeCode.AUTH_EXPIRED

    @classmethod
    def from_wire(cls, payload: Any) -> Envelope:
        """Build an envelope from a parsed JSON value.

        Raises:
            TransportError: If the value is not an object or a field has the
                wrong type.
        """
        if not isinstance(payload, dict):
            raise TransportError(f"response is not an envelope object (got {type(payload).__name__})")

        fields = {key: _lookup(payload, key) for key in _WIRE_KEYS}

        code = fields["Code"]
        if code is None:
            code = 0
        # bool is an int subclass; JSON true/false is not a status code
        if isinstance(code, bool) or not isinstance(code, int):
            raise TransportError(f"envelope Code must be an integer, got {code!r}")

        message = fields["Message"]
        if message is None:
            message = ""
        if not isinstance(message, str):
            raise TransportError(f"envelope Message must be a string, got {type(message).__name__}")

        return cls(code=code, message=message, data=fields["Data"])

    def to_wire(self) -> dict[str, Any]:
        return {"Code": self.code, "Message": self.message, "Data": self.data}


def _lookup(payload: dict[str, Any], key: str) -> Any:
    if key in payload:
        return payload[key]
    lowered = key.lower()
    for name, value in payload.items():
        if isinstance(name, str) and name.lower() == lowered:
            return value
    return None


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite JSON constant {name}")


def decode_envelope(raw: bytes | str) -> Envelope:
    """Parse a response body into an Envelope.

    NaN and Infinity literals are rejected; they are not valid JSON and
    cannot appear in a well-formed envelope.

    Raises:
        TransportError: If the body is not valid JSON or not an envelope.
    """
    try:
        parsed = json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        raise TransportError(f"undecodable response body: {e}") from e
    return Envelope.from_wire(parsed)


def encode_body(body: Any) -> bytes:
    """Serialize a request body to JSON bytes (empty for None).

    Raises:
        TransportError: If the body is not JSON-serializable.
    """
    if body is None:
        return b""
    try:
        return json.dumps(body, allow_nan=False, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise TransportError(f"request body is not serializable: {e}") from e

