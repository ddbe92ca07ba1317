# src/indexsync/clients/session.py
"""Session: credentials and the current authorization token.

Thread Safety:
    Many operations share one Session and may independently detect an
    expired token. Two locks keep that safe:

    - _token_lock guards every read and write of the token, so no reader
      ever observes a partially replaced value.
    - _login_lock serializes logins, so concurrent re-logins never
      interleave their writes.

    A successful login writes the token while holding _token_lock; any
    later read of Session.token by any thread acquires the same lock and
    therefore sees that write (or a newer one).

Refresh De-duplication:
    refresh(stale_token) only logs in if the token is still the one the
    caller's failed request used. When N threads hit an expired token at
    once, the first performs the login and the rest reuse its token.
"""

from __future__ import annotations

import threading

from indexsync.clients.transport import Transport
from indexsync.contracts.envelope import Envelope
from indexsync.contracts.errors import AuthFailureError, TransportError
from indexsync.core.logging import get_logger, token_fingerprint

logger = get_logger(__name__)


class Session:
    """Holder of credentials and the current session token."""

    def __init__(
        self,
        transport: Transport,
        *,
        username: str,
        password: str,
        login_path: str,
    ) -> None:
        """Initialize session. No login is performed here.

        Args:
            transport: Transport used for the login exchange
            username: Login username
            password: Login password
            login_path: Login endpoint path relative to the service address
        """
        self._transport = transport
        self._username = username
        self._password = password
        self._login_path = login_path.strip("/")
        self._token = ""
        self._token_lock = threading.Lock()
        self._login_lock = threading.Lock()
        self._login_count = 0

    @property
    def token(self) -> str:
        """Current token (empty until the first successful login)."""
        with self._token_lock:
            return self._token

    @property
    def username(self) -> str:
        return self._username

    @property
    def login_url(self) -> str:
        return self._transport.url(self._login_path)

    @property
    def login_count(self) -> int:
        """Number of successful logins performed by this session."""
        with self._token_lock:
            return self._login_count

    def login(self) -> Envelope:
        """Obtain a new token from the login endpoint.

        Returns:
            The login response envelope

        Raises:
            AuthFailureError: If the exchange fails, the service rejects the
                credentials, or the payload is not a token string
        """
        with self._login_lock:
            return self._login_locked()

    def refresh(self, stale_token: str) -> str:
        """Replace a token the service has rejected.

        Args:
            stale_token: Token the failed request was sent with

        Returns:
            The current token after refresh

        Raises:
            AuthFailureError: If a login was needed and failed
        """
        with self._login_lock:
            current = self.token
            if current != stale_token:
                logger.debug(
                    "token already refreshed by another operation",
                    token=token_fingerprint(current),
                )
                return current
            self._login_locked()
            return self.token

    def _login_locked(self) -> Envelope:
        """Login body; caller must hold _login_lock."""
        body = {"username": self._username, "password": self._password}
        try:
            envelope = self._transport.send("POST", self.login_url, body, token=self.token)
        except TransportError as e:
            logger.warning("login request failed", url=self.login_url, error=str(e))
            raise AuthFailureError(f"login request failed: {e}") from e

        if not envelope.ok:
            logger.warning(
                "login rejected",
                url=self.login_url,
                code=envelope.code,
                server_message=envelope.message,
            )
            raise AuthFailureError(
                f"login rejected, code: {envelope.code}, message: {envelope.message}",
                code=envelope.code,
            )

        token = envelope.data
        # Tokens travel in an HTTP header, which only carries printable ASCII
        if not isinstance(token, str) or not (token.isascii() and token.isprintable()):
            logger.warning("malformed login response", payload_type=type(token).__name__)
            raise AuthFailureError("malformed login response", code=envelope.code)

        with self._token_lock:
            self._token = token
            self._login_count += 1

        logger.info("login succeeded", username=self._username, token=token_fingerprint(token))
        return envelope
