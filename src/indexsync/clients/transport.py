# src/indexsync/clients/transport.py
"""HTTP transport for the indexing service.

Wraps a single httpx.Client configured once at construction for plain or
secure transport. Every exchange carries a JSON body (possibly empty) and a
JWT authorization header, and every response body is decoded into an
Envelope. The HTTP status line is not interpreted: the service reports
outcomes through the envelope's Code field.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from indexsync.contracts.envelope import Envelope, decode_envelope, encode_body
from indexsync.contracts.enums import Protocol
from indexsync.contracts.errors import TransportError
from indexsync.core.logging import get_logger

logger = get_logger(__name__)


class Transport:
    """JSON-over-HTTP sender bound to one service address.

    httpx.Client is thread-safe; one Transport is shared by all operations.

    Example:
        transport = Transport(Protocol.SECURE, "index.example.com")
        envelope = transport.send("GET", transport.url("idx", "doc", "5"), token=token)
    """

    def __init__(
        self,
        protocol: Protocol,
        address: str,
        *,
        timeout: float = 30.0,
        insecure_skip_verify: bool = False,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize transport.

        Args:
            protocol: PLAIN (http) or SECURE (https)
            address: host[:port] of the service
            timeout: Request timeout in seconds
            insecure_skip_verify: Disable certificate verification for https.
                Only honored when explicitly requested.
            client: Pre-built httpx.Client (tests inject MockTransport here)
        """
        self._protocol = protocol
        self._address = address.rstrip("/")
        if client is None:
            verify = not (protocol == Protocol.SECURE and insecure_skip_verify)
            if not verify:
                logger.warning(
                    "TLS certificate verification disabled",
                    address=self._address,
                )
            client = httpx.Client(timeout=timeout, verify=verify, follow_redirects=False)
        self._client = client

    @property
    def protocol(self) -> Protocol:
        return self._protocol

    @property
    def address(self) -> str:
        return self._address

    def url(self, *segments: str) -> str:
        """Build ``{protocol}://{address}/{segments...}``."""
        path = "/".join(segment.strip("/") for segment in segments)
        return f"{self._protocol.value}://{self._address}/{path}"

    def send(self, method: str, url: str, body: Any = None, *, token: str) -> Envelope:
        """Perform one exchange and decode the response envelope.

        Args:
            method: HTTP method
            url: Absolute request URL
            body: JSON-serializable request body, or None for an empty body
            token: Session token placed in the Authorization header

        Returns:
            Decoded envelope, whatever its code

        Raises:
            TransportError: On network failure or undecodable response
        """
        content = encode_body(body)
        headers = {
            "Content-Type": "application/json",
            # h11 rejects header values with trailing whitespace, so no space before a missing token
            "Authorization": f"JWT {token}" if token else "JWT",
        }

        start = time.perf_counter()
        try:
            response = self._client.request(method, url, content=content, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as e:
            logger.debug("request failed", method=method, url=url, error=str(e))
            raise TransportError(f"{method} {url}: {e}") from e
        latency_ms = (time.perf_counter() - start) * 1000

        envelope = decode_envelope(response.content)
        logger.debug(
            "request completed",
            method=method,
            url=url,
            http_status=response.status_code,
            code=envelope.code,
            latency_ms=round(latency_ms, 2),
        )
        return envelope

    def close(self) -> None:
        """Close the underlying httpx client and release connections."""
        self._client.close()
