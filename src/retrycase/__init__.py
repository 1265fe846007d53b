"""retrycase - pluggable retry policies and a retry execution loop.

Re-invokes an operation that may fail according to a policy (attempt
limits, fixed delays, exponential backoff with jitter) until it succeeds,
the policy gives up, or the caller cancels.

Quick Start:
    >>> from retrycase import retry, simple, RetryExhaustedError
    >>>
    >>> try:
    ...     body = retry(simple(3), lambda: fetch("https://example.com"))
    ... except RetryExhaustedError as e:
    ...     print("gave up:", e.last_error)

Backoff and Hooks:
    >>> from retrycase import exponential_backoff, on_error
    >>> retry(exponential_backoff(5, 0.2), fetch_quote, on_error(metrics.count_failure))

Async:
    >>> from retrycase import aretry, fixed
    >>> await aretry(fixed(3, 1.0), lambda: session.get(url))

Decorator (fresh policy per call):
    >>> from retrycase import retrying
    >>> @retrying(lambda: exponential_backoff(4, 0.5))
    ... def sync_invoices(batch_id: str) -> int: ...

Without exceptions:
    >>> from retrycase import try_retry
    >>> try_retry(simple(3), load_config).unwrap_or(DEFAULT_CONFIG)
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors
from .foundation.errors import (
    ContractViolation,
    Err,
    FailureKind,
    Ok,
    OperationCancelled,
    Result,
    RetryError,
    RetryExhaustedError,
    classify_failure,
    is_cancellation,
)

# Settings
from .foundation.config import RetrySettings, clear_settings_cache, get_settings

# Cancellation
from .runtime.concurrency import CancelToken

# Retry
from .runtime.retry import (
    ExecutionConfig,
    ExponentialBackoffPolicy,
    FixedPolicy,
    Option,
    RetryOn,
    RetryPolicy,
    SimplePolicy,
    aretry,
    exponential_backoff,
    fixed,
    label,
    on_error,
    retry,
    retry_on,
    retrying,
    simple,
    try_retry,
)

# Observability
from .runtime.observability import configure_logging, get_logger, logging_hook

__all__ = [
    "__version__",
    # Execution
    "retry", "aretry", "try_retry", "retrying",
    # Policies
    "RetryPolicy", "SimplePolicy", "FixedPolicy", "ExponentialBackoffPolicy", "RetryOn",
    "simple", "fixed", "exponential_backoff", "retry_on",
    # Options
    "ExecutionConfig", "Option", "on_error", "label",
    # Errors
    "RetryError", "RetryExhaustedError", "ContractViolation", "OperationCancelled",
    "FailureKind", "classify_failure", "is_cancellation",
    "Result", "Ok", "Err",
    # Cancellation
    "CancelToken",
    # Settings
    "RetrySettings", "get_settings", "clear_settings_cache",
    # Observability
    "configure_logging", "get_logger", "logging_hook",
]
