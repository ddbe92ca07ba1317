"""Tagged result of a single retry attempt.

An attempt ends in exactly one of three states:

- success: stop retrying; carries the attempt's value
- fatal: stop retrying; the wrapped error propagates unchanged
- retryable: spend one attempt from the budget, wait, try again

Example:
    def attempt() -> RetryOutcome[Envelope]:
        try:
            envelope = send()
        except TransportError as e:
            return RetryOutcome.fatal(e)
        if envelope.auth_expired:
            return RetryOutcome.retryable(AuthExpiredError("token rejected"))
        return RetryOutcome.success(envelope)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from indexsync.contracts.enums import OutcomeKind

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RetryOutcome(Generic[T]):
    """Outcome of one attempt. Build with the factory classmethods."""

    kind: OutcomeKind
    value: T | None = None
    error: BaseException | None = None

    def __post_init__(self) -> None:
        if self.kind == OutcomeKind.SUCCESS:
            if self.error is not None:
                raise ValueError("success outcome must not carry an error")
        elif self.error is None:
            raise ValueError(f"{self.kind} outcome requires an error")

    @classmethod
    def success(cls, value: T | None = None) -> RetryOutcome[T]:
        return cls(kind=OutcomeKind.SUCCESS, value=value)

    @classmethod
    def fatal(cls, error: BaseException) -> RetryOutcome[T]:
        return cls(kind=OutcomeKind.FATAL, error=error)

    @classmethod
    def retryable(cls, error: BaseException) -> RetryOutcome[T]:
        return cls(kind=OutcomeKind.RETRYABLE, error=error)

    @property
    def is_success(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS

    @property
    def is_fatal(self) -> bool:
        return self.kind == OutcomeKind.FATAL

    @property
    def is_retryable(self) -> bool:
        return self.kind == OutcomeKind.RETRYABLE
