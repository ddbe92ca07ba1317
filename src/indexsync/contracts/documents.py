"""Document shapes exchanged with the indexing service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Document:
    """Addressable unit acted on by the document operations.

    A document without an id can only be created; the service assigns one.
    """

    index: str
    doc_type: str
    id: str | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.index:
            raise ValueError("index must be non-empty")
        if not self.doc_type:
            raise ValueError("doc_type must be non-empty")
        if self.id == "":
            raise ValueError("id must be non-empty when provided")

    def url_path(self) -> tuple[str, ...]:
        """Path segments addressing this document (id omitted when absent)."""
        if self.id is None:
            return (self.index, self.doc_type)
        return (self.index, self.doc_type, self.id)


@dataclass(frozen=True, slots=True)
class DocumentItem:
    """Search-engine item returned in the payload of a Get.

    Fields mirror the service's underscore-prefixed keys. Absent keys take
    zero values so a "not found" item still parses.
    """

    id: str = ""
    index: str = ""
    doc_type: str = ""
    version: int = 0
    found: bool = False
    source: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> DocumentItem:
        """Parse an envelope payload.

        Raises:
            TypeError: If the payload is not a JSON object.
        """
        if not isinstance(payload, dict):
            raise TypeError(f"document payload must be an object, got {type(payload).__name__}")
        source = payload.get("_source")
        return cls(
            id=str(payload.get("_id") or ""),
            index=str(payload.get("_index") or ""),
            doc_type=str(payload.get("_type") or ""),
            version=int(payload.get("_version") or 0),
            found=bool(payload.get("found", False)),
            source=dict(source) if isinstance(source, dict) else {},
        )


@dataclass(frozen=True, slots=True)
class BatchRequest:
    """One entry of a multi-document submission.

    Kept for wire compatibility with the service's bulk shape. No operation
    in this client submits batches.
    """

    action: str
    index: str
    doc_type: str
    id: str = ""
    parent: str = ""
    pipeline: str = ""
    fields: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "Action": self.action,
            "Index": self.index,
            "Type": self.doc_type,
            "ID": self.id,
            "Parent": self.parent,
            "Pipeline": self.pipeline,
            "Data": dict(self.fields),
        }
