"""Error handling for retrycase.

- FailureKind/classify_failure: taxonomy of failures seen by the executor
- RetryExhaustedError: terminal failure wrapping the last operation error
- ContractViolation: API misuse, never retried
- OperationCancelled/is_cancellation: cancellation detection
- Result/Ok/Err: value-returning execution without exceptions
"""

from .errors import (
    ContractViolation,
    FailureKind,
    OperationCancelled,
    RetryError,
    RetryExhaustedError,
    classify_failure,
    is_cancellation,
)
from .result import Err, Ok, Result

__all__ = [
    # Taxonomy
    "FailureKind", "classify_failure", "is_cancellation",
    # Exceptions
    "RetryError", "RetryExhaustedError", "OperationCancelled", "ContractViolation",
    # Result
    "Result", "Ok", "Err",
]
