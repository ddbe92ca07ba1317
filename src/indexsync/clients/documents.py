# src/indexsync/clients/documents.py
"""Document operations against the indexing service.

Each operation (Get, Create, Update, Delete) is one request/response/reauth
cycle run under the RetryExecutor:

1. Send the request with the session's current token.
2. TransportError: fatal, propagated unchanged (no retry).
3. Any code other than 16: the loop stops, even for business failures.
4. Code 16: refresh the session token. A failed login is fatal; a
   successful one makes the attempt retryable, so the next exchange uses
   the new token.

Once the loop settles, code 0 returns the envelope and any other code
raises BusinessError carrying the code and server message.
"""

from __future__ import annotations

from types import TracebackType
from typing import TYPE_CHECKING, Any, Self

from indexsync.clients.session import Session
from indexsync.clients.transport import Transport
from indexsync.contracts.documents import Document, DocumentItem
from indexsync.contracts.envelope import Envelope
from indexsync.contracts.enums import Operation
from indexsync.contracts.errors import AuthExpiredError, AuthFailureError, BusinessError, TransportError
from indexsync.contracts.results import RetryOutcome
from indexsync.core.logging import get_logger, token_fingerprint
from indexsync.engine.retry import RetryConfig, RetryExecutor

if TYPE_CHECKING:
    from indexsync.core.config import ClientSettings

logger = get_logger(__name__)


class DocumentClient:
    """Client for the four document operations, shared across threads.

    Construction performs the initial login and raises AuthFailureError if
    it does not succeed.

    Example:
        settings = load_settings(Path("indexsync.yaml"))
        with DocumentClient.from_settings(settings) as client:
            client.update("products", "item", "42", {"name": "lamp"})
            item = client.get_item("products", "item", "42")
    """

    def __init__(
        self,
        transport: Transport,
        session: Session,
        *,
        retry_executor: RetryExecutor | None = None,
    ) -> None:
        """Initialize client and log in.

        Args:
            transport: Transport used for document exchanges
            session: Session holding credentials and token
            retry_executor: Retry policy (default: 3 attempts, 1s delay)

        Raises:
            AuthFailureError: If the initial login fails
        """
        self._transport = transport
        self._session = session
        self._retry = retry_executor or RetryExecutor(RetryConfig.default())
        self._session.login()

    @classmethod
    def from_settings(cls, settings: ClientSettings, *, retry_executor: RetryExecutor | None = None) -> DocumentClient:
        """Build transport, session, and retry policy from ClientSettings."""
        transport = Transport(
            settings.protocol,
            settings.address,
            timeout=settings.timeout_seconds,
            insecure_skip_verify=settings.insecure_skip_verify,
        )
        session = Session(
            transport,
            username=settings.username,
            password=settings.password,
            login_path=settings.login_path,
        )
        executor = retry_executor or RetryExecutor(RetryConfig.from_settings(settings.retry))
        try:
            return cls(transport, session, retry_executor=executor)
        except AuthFailureError:
            transport.close()
            raise

    @property
    def session(self) -> Session:
        return self._session

    @property
    def token(self) -> str:
        return self._session.token

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def get(self, index: str, doc_type: str, doc_id: str) -> Envelope:
        """Fetch a document. The envelope's data holds the search-engine item."""
        return self._execute(Operation.GET, (index, doc_type, doc_id))

    def create(self, index: str, doc_type: str, fields: dict[str, Any]) -> Envelope:
        """Create a document; the service assigns its id."""
        return self._execute(Operation.CREATE, (index, doc_type), fields)

    def update(self, index: str, doc_type: str, doc_id: str, fields: dict[str, Any]) -> Envelope:
        """Create or replace the document with the given id."""
        return self._execute(Operation.UPDATE, (index, doc_type, doc_id), fields)

    def delete(self, index: str, doc_type: str, doc_id: str) -> Envelope:
        """Delete a document. A missing id surfaces as the service's BusinessError."""
        return self._execute(Operation.DELETE, (index, doc_type, doc_id))

    def get_item(self, index: str, doc_type: str, doc_id: str) -> DocumentItem:
        """Fetch a document and parse its payload into a DocumentItem."""
        envelope = self.get(index, doc_type, doc_id)
        return DocumentItem.from_payload(envelope.data)

    def sync(self, document: Document) -> Envelope:
        """Push a document: update when it has an id, create otherwise."""
        if document.id is None:
            return self.create(document.index, document.doc_type, document.fields)
        return self.update(document.index, document.doc_type, document.id, document.fields)

    # -------------------------------------------------------------------------
    # Request/response/reauth cycle
    # -------------------------------------------------------------------------

    def _execute(self, operation: Operation, path: tuple[str, ...], body: Any = None) -> Envelope:
        url = self._transport.url(*path)
        log = logger.bind(operation=operation.label, url=url)

        def attempt() -> RetryOutcome[Envelope]:
            token = self._session.token
            try:
                envelope = self._transport.send(operation.value, url, body, token=token)
            except TransportError as e:
                return RetryOutcome.fatal(e)

            if not envelope.auth_expired:
                return RetryOutcome.success(envelope)

            log.info("session token rejected, logging in again", token=token_fingerprint(token))
            try:
                self._session.refresh(token)
            except AuthFailureError as e:
                return RetryOutcome.fatal(e)
            expired = AuthExpiredError(
                f"{operation.label} {url} rejected token, code: {envelope.code}, message: {envelope.message}"
            )
            return RetryOutcome.retryable(expired)

        envelope = self._retry.execute(attempt)
        assert envelope is not None, "document attempts always carry an envelope on success"

        if not envelope.ok:
            log.warning("operation failed", code=envelope.code, server_message=envelope.message)
            raise BusinessError(operation.label, envelope.code, envelope.message)
        return envelope

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the transport and release connections."""
        self._transport.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
