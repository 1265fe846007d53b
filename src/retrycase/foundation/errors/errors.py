"""Error taxonomy for retry execution.

Every failure a caller can observe falls into one of four kinds:
- OPERATIONAL: raised by the operation, retried according to the policy
- CANCELLED: an operational failure that is never retried
- EXHAUSTED: RetryExhaustedError, raised once the policy says stop
- CONTRACT_VIOLATION: API misuse, raised before the operation runs
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from enum import StrEnum


class FailureKind(StrEnum):
    """Classification of failures seen by the retry executor."""
    OPERATIONAL = "OPERATIONAL"
    CANCELLED = "CANCELLED"
    EXHAUSTED = "EXHAUSTED"
    CONTRACT_VIOLATION = "CONTRACT_VIOLATION"


class RetryError(Exception):
    """Base class for failures produced by retrycase itself."""


class RetryExhaustedError(RetryError):
    """The policy stopped retrying. Wraps the last error the operation raised.

    The wrapped error is available as ``last_error`` and is also chained as
    ``__cause__`` so tracebacks show the root failure.

    Attributes:
        last_error: Error raised by the final attempt
        attempts: Number of times the operation was invoked
    """

    def __init__(self, last_error: BaseException, attempts: int = 0) -> None:
        super().__init__(last_error, attempts)
        self.last_error = last_error
        self.attempts = attempts

    def __str__(self) -> str:
        return f"max retries exceeded: {self.last_error}"


class OperationCancelled(RetryError):
    """Raised by an operation whose caller cancelled it. Policies never retry it."""


class ContractViolation(TypeError):
    """Illegal use of the retry API (missing policy, missing operation, bad option).

    Signals a programming error rather than a runtime condition. Never handle
    it, only prevent it. The executor never retries or wraps it.
    """


_CANCELLATION_TYPES: tuple[type[BaseException], ...] = (
    OperationCancelled,
    asyncio.CancelledError,
    concurrent.futures.CancelledError,
)


def is_cancellation(error: BaseException | None) -> bool:
    """True if error, or any error it was raised from, is a cancellation."""
    seen: set[int] = set()
    while error is not None and id(error) not in seen:
        if isinstance(error, _CANCELLATION_TYPES):
            return True
        seen.add(id(error))
        error = error.__cause__
    return False


def classify_failure(error: BaseException) -> FailureKind:
    """Map any exception to its FailureKind."""
    match error:
        case ContractViolation():
            return FailureKind.CONTRACT_VIOLATION
        case RetryExhaustedError():
            return FailureKind.EXHAUSTED
        case _ if is_cancellation(error):
            return FailureKind.CANCELLED
        case _:
            return FailureKind.OPERATIONAL
