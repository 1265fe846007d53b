"""Retry policies and the retry execution loop.

Policies decide, after each failure, whether to try again and how long to
wait first. The executor drives the operation and consults the policy.

Example:
    >>> from retrycase.runtime.retry import retry, exponential_backoff, on_error
    >>>
    >>> value = retry(
    ...     exponential_backoff(5, initial_delay=0.2),
    ...     lambda: client.get("/quotes"),
    ...     on_error(failures.append),
    ... )
"""

from .backoff import RandomSource, jitter_factor, next_backoff
from .executor import aretry, retry, retrying, try_retry
from .options import ErrorHook, ExecutionConfig, Option, label, on_error
from .policy import (
    ExponentialBackoffPolicy,
    FixedPolicy,
    RetryOn,
    RetryPolicy,
    SimplePolicy,
    decide,
    decide_async,
    exponential_backoff,
    fixed,
    retry_on,
    simple,
)

__all__ = [
    # Policies
    "RetryPolicy",
    "SimplePolicy",
    "FixedPolicy",
    "ExponentialBackoffPolicy",
    "RetryOn",
    "simple",
    "fixed",
    "exponential_backoff",
    "retry_on",
    "decide",
    "decide_async",
    # Backoff
    "RandomSource",
    "jitter_factor",
    "next_backoff",
    # Options
    "ExecutionConfig",
    "Option",
    "ErrorHook",
    "on_error",
    "label",
    # Execution
    "retry",
    "aretry",
    "try_retry",
    "retrying",
]
