# tests/conftest.py
"""Shared test fixtures and helpers.

The indexing service is simulated with respx: every test that talks HTTP
gets a ``service`` router bound to ``http://index.test`` and registers the
routes it needs. Retry waits are captured by ``sleeps`` instead of blocking.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import itertools
import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
import respx
from hypothesis import Phase, Verbosity, settings

from indexsync.clients import DocumentClient, Session, Transport
from indexsync.contracts import Protocol
from indexsync.engine.retry import RetryConfig, RetryExecutor

ADDRESS = "index.test"
BASE_URL = f"http://{ADDRESS}"
LOGIN_PATH = "api/login"
USERNAME = "sync"
PASSWORD = "s3cret"


def envelope(code: int = 0, message: str = "", data: Any = None) -> httpx.Response:
    """Build a service response carrying the given envelope."""
    return httpx.Response(200, json={"Code": code, "Message": message, "Data": data})


def token_issuer(prefix: str = "tok") -> Callable[[httpx.Request], httpx.Response]:
    """Login handler issuing tok1, tok2, ... on successive calls."""
    counter = itertools.count(1)

    def issue(request: httpx.Request) -> httpx.Response:
        return envelope(data=f"{prefix}{next(counter)}")

    return issue


class SleepRecorder:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def service() -> Iterator[respx.MockRouter]:
    """Mocked indexing service. Routes are relative to BASE_URL."""
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as router:
        yield router


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def transport() -> Iterator[Transport]:
    transport = Transport(Protocol.PLAIN, ADDRESS, timeout=5.0)
    yield transport
    transport.close()


@pytest.fixture
def session(transport: Transport) -> Session:
    return Session(transport, username=USERNAME, password=PASSWORD, login_path=LOGIN_PATH)


@pytest.fixture
def make_client(transport: Transport, session: Session, sleeps: SleepRecorder) -> Callable[..., DocumentClient]:
    """Factory for a logged-in DocumentClient with recorded (non-blocking) waits."""

    def _make(max_attempts: int = 3, delay: float = 1.0) -> DocumentClient:
        executor = RetryExecutor(RetryConfig(max_attempts=max_attempts, delay=delay), sleep=sleeps)
        return DocumentClient(transport, session, retry_executor=executor)

    return _make


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    """Minimal valid settings file pointing at the mocked service."""
    path = tmp_path / "indexsync.yaml"
    path.write_text(
        "\n".join(
            [
                "secure: false",
                f'address: "{ADDRESS}"',
                f'username: "{USERNAME}"',
                f'password: "{PASSWORD}"',
                f'login_path: "{LOGIN_PATH}"',
                "retry:",
                "  max_attempts: 2",
                "  delay_seconds: 0",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Restore root logger handlers replaced by configure_logging()."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
