# src/indexsync/engine/retry.py
"""RetryExecutor: Bounded fixed-delay retry with tenacity integration.

The executor is operation-agnostic. An operation is a zero-argument callable
that returns a RetryOutcome describing how its single attempt ended:

- success: stop and return the outcome's value
- fatal: stop and raise the wrapped error unchanged
- retryable: spend one attempt; wait the fixed delay and try again, or raise
  the last retryable error as-is once the budget is exhausted

Exceptions raised by the operation itself are not classified and propagate
immediately, exactly like a fatal outcome.

The delay is constant (no backoff, no jitter) and blocks the calling thread.
The executor keeps no state between execute() calls, so one instance can be
shared by every document operation and every thread.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from indexsync.contracts.results import RetryOutcome
from indexsync.core.logging import get_logger

if TYPE_CHECKING:
    from indexsync.core.config import RetrySettings

T = TypeVar("T")

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """Configuration for retry behavior.

    max_attempts is the TOTAL number of tries, not the number of retries.
    So max_attempts=3 means: try, retry, retry (3 total).
    """

    max_attempts: int = 3
    delay: float = 1.0  # seconds, constant between attempts

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")

    @classmethod
    def default(cls) -> RetryConfig:
        return cls()

    @classmethod
    def no_retry(cls) -> RetryConfig:
        """Factory for no-retry configuration (single attempt)."""
        return cls(max_attempts=1, delay=0.0)

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> RetryConfig:
        """Factory from RetrySettings config model.

        Args:
            settings: Validated Pydantic settings model

        Returns:
            RetryConfig with mapped values
        """
        return cls(
            max_attempts=settings.max_attempts,
            delay=settings.delay_seconds,
        )


def _is_retryable(outcome: RetryOutcome[object]) -> bool:
    return outcome.is_retryable


def _last_outcome(retry_state: RetryCallState) -> RetryOutcome[object]:
    """Return the final outcome instead of raising tenacity.RetryError."""
    assert retry_state.outcome is not None, "retry_error_callback without an outcome is impossible"
    outcome: RetryOutcome[object] = retry_state.outcome.result()
    return outcome


class RetryExecutor:
    """Runs an operation under a bounded, fixed-delay retry policy.

    Example:
        executor = RetryExecutor(RetryConfig(max_attempts=3, delay=1.0))

        envelope = executor.execute(
            attempt_update,
            on_retry=lambda attempt, error: log_retry(attempt, error),
        )
    """

    def __init__(
        self,
        config: RetryConfig,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize with config.

        Args:
            config: Retry configuration
            sleep: Blocking wait used between attempts (injectable for tests)
        """
        self._config = config
        self._sleep = sleep

    @property
    def config(self) -> RetryConfig:
        return self._config

    def execute(
        self,
        operation: Callable[[], RetryOutcome[T]],
        *,
        on_retry: Callable[[int, BaseException], None] | None = None,
    ) -> T | None:
        """Execute operation with retry logic.

        Args:
            operation: Single-attempt callable returning a RetryOutcome
            on_retry: Optional callback before each wait (0-based attempt, error)

        Returns:
            Value carried by the success outcome

        Raises:
            BaseException: The fatal error, or the last retryable error once
                max_attempts is exhausted
            TypeError: If the operation returns something other than a RetryOutcome
        """

        def attempt() -> RetryOutcome[T]:
            outcome = operation()
            if not isinstance(outcome, RetryOutcome):
                raise TypeError(f"operation must return RetryOutcome, got {type(outcome).__name__}")
            return outcome

        def before_sleep(retry_state: RetryCallState) -> None:
            assert retry_state.outcome is not None
            outcome: RetryOutcome[T] = retry_state.outcome.result()
            assert outcome.error is not None
            # tenacity counts from 1; callbacks use 0-based attempt numbers
            attempt_index = retry_state.attempt_number - 1
            logger.debug(
                "retrying operation",
                attempt=attempt_index,
                delay=self._config.delay,
                error=str(outcome.error),
            )
            if on_retry is not None:
                on_retry(attempt_index, outcome.error)

        retrying = Retrying(
            stop=stop_after_attempt(self._config.max_attempts),
            wait=wait_fixed(self._config.delay),
            retry=retry_if_result(_is_retryable),
            retry_error_callback=_last_outcome,
            before_sleep=before_sleep,
            sleep=self._sleep,
        )
        final: RetryOutcome[T] = retrying(attempt)

        if final.is_success:
            return final.value

        assert final.error is not None, "non-success outcome without error is impossible"
        if final.is_retryable:
            logger.warning(
                "retry attempts exhausted",
                max_attempts=self._config.max_attempts,
                error=str(final.error),
            )
        raise final.error
