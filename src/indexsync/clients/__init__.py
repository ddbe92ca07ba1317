"""Clients for the indexing service.

Example:
    from indexsync.clients import DocumentClient
    from indexsync.core.config import load_settings

    with DocumentClient.from_settings(load_settings(Path("indexsync.yaml"))) as client:
        client.create("products", "item", {"name": "lamp"})
"""

from indexsync.clients.documents import DocumentClient
from indexsync.clients.session import Session
from indexsync.clients.transport import Transport

__all__ = [
    "DocumentClient",
    "Session",
    "Transport",
]
