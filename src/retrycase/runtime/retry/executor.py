"""Retry execution loop.

Runs an operation until it succeeds or its policy says stop:

1. Invoke the operation; return its value on success
2. On failure, call the error hook (if any), then ask the policy
3. If the policy says retry (it has already slept), loop to 1
4. Otherwise raise RetryExhaustedError chained from the last error

The loop is iterative, so stack depth does not grow with the attempt count.
All run state lives in the call, so concurrent runs are independent as long
as each gets its own policy instance.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Awaitable
from typing import Callable, TypeVar

from retrycase.foundation.errors import (
    ContractViolation,
    Err,
    Ok,
    Result,
    RetryExhaustedError,
    classify_failure,
)
from retrycase.runtime.concurrency import checkpoint

from .options import ExecutionConfig, Option, label
from .policy import RetryPolicy, decide, decide_async

logger = logging.getLogger("retrycase.retry")

T = TypeVar("T")


def _prepare(policy: RetryPolicy | None, operation: Callable[[], object] | None, options: tuple[Option, ...]) -> ExecutionConfig:
    """Validate the call boundary and build the run's config."""
    if policy is None:
        raise ContractViolation("illegal use of api: cannot operate on a missing retry policy")
    if operation is None:
        raise ContractViolation("illegal use of api: cannot invoke a missing operation")
    if not callable(policy):
        raise ContractViolation(f"illegal use of api: retry policy must be callable, got {type(policy).__name__}")
    if not callable(operation):
        raise ContractViolation(f"illegal use of api: operation must be callable, got {type(operation).__name__}")
    return ExecutionConfig(policy=policy, operation=operation).apply(options)


def _observe(config: ExecutionConfig, error: Exception, attempt: int) -> None:
    """Log a failed attempt and pass it to the error hook."""
    logger.info(f"[{config.label}] Attempt {attempt} failed ({classify_failure(error)}): {error}")
    if config.hook is None:
        return
    try:
        config.hook(error)
    except Exception:
        logger.exception(f"[{config.label}] Error hook raised on attempt {attempt}; continuing")


def _exhausted(config: ExecutionConfig, error: Exception, attempts: int) -> RetryExhaustedError:
    logger.warning(f"[{config.label}] Giving up after {attempts} attempt(s): {error}")
    return RetryExhaustedError(error, attempts)


def retry(policy: RetryPolicy, operation: Callable[[], T], *options: Option) -> T:
    """Invoke ``operation`` until it succeeds or ``policy`` stops retrying.

    Args:
        policy: Fresh policy instance for this run
        operation: Zero-argument callable; raising an Exception is a failure
        *options: Execution options such as ``on_error(hook)``

    Returns:
        The operation's return value from the first successful attempt

    Raises:
        RetryExhaustedError: Policy stopped; ``last_error`` holds the final failure
        ContractViolation: Missing policy/operation or invalid option; nothing is invoked

    Example:
        >>> retry(simple(3), lambda: client.get("/health"))
    """
    config = _prepare(policy, operation, options)
    attempt = 0
    while True:
        attempt += 1
        try:
            result = config.operation()
        except ContractViolation:
            raise
        except Exception as exc:
            error = exc
        else:
            if inspect.iscoroutine(result):
                result.close()
                raise ContractViolation("illegal use of api: coroutine operation passed to retry(); use aretry()")
            return result  # type: ignore[return-value]

        _observe(config, error, attempt)
        if not decide(config.policy, error):
            raise _exhausted(config, error, attempt) from error


async def aretry(policy: RetryPolicy, operation: Callable[[], Awaitable[T]], *options: Option) -> T:
    """Async variant of :func:`retry` for operations returning awaitables.

    Delays are ``asyncio.sleep`` calls, so cancelling the task interrupts a
    delay promptly. ``asyncio.CancelledError`` always propagates unchanged.

    Example:
        >>> await aretry(exponential_backoff(5, 0.1), lambda: session.get(url))
    """
    config = _prepare(policy, operation, options)
    attempt = 0
    while True:
        attempt += 1
        try:
            return await _invoke_async(config.operation)  # type: ignore[arg-type]
        except ContractViolation:
            raise
        except Exception as exc:
            error = exc

        _observe(config, error, attempt)
        if not await decide_async(config.policy, error):
            raise _exhausted(config, error, attempt) from error
        await checkpoint()  # Cooperative cancellation point


async def _invoke_async(operation: Callable[[], Awaitable[T]]) -> T:
    pending = operation()
    if not inspect.isawaitable(pending):
        raise ContractViolation("illegal use of api: aretry() operation must return an awaitable")
    return await pending


def try_retry(policy: RetryPolicy, operation: Callable[[], T], *options: Option) -> Result[T, RetryExhaustedError]:
    """Like :func:`retry`, but returns ``Ok(value)`` or ``Err(RetryExhaustedError)``.

    Contract violations still raise.

    Example:
        >>> try_retry(simple(3), load_config).unwrap_or(DEFAULT_CONFIG)
    """
    try:
        return Ok(retry(policy, operation, *options))
    except RetryExhaustedError as e:
        return Err(e)


def retrying(policy_factory: Callable[[], RetryPolicy], *options: Option) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator retrying every call of the wrapped function.

    Each call builds a fresh policy from ``policy_factory`` so calls never
    share retry state. Coroutine functions are retried with :func:`aretry`.

    Example:
        >>> @retrying(lambda: exponential_backoff(4, 0.5), on_error(log_failure))
        ... def fetch(url: str) -> bytes:
        ...     return client.get(url).content
    """
    if policy_factory is None or not callable(policy_factory):
        raise ContractViolation("illegal use of api: retrying() needs a zero-argument policy factory")

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = label(getattr(func, "__qualname__", None) or type(func).__name__)

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args: object, **kwargs: object) -> T:
                return await aretry(policy_factory(), functools.partial(func, *args, **kwargs), name, *options)
            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args: object, **kwargs: object) -> T:
            return retry(policy_factory(), functools.partial(func, *args, **kwargs), name, *options)
        return wrapper

    return decorator
