"""Retry policies: stateful decisions on whether a failed operation runs again.

A policy is any callable taking the error of a failed attempt and returning
True ("retry") or False ("stop"). Built-in policies apply their own delay
before answering True, so the executor never sleeps on its own.

Built-ins:
- SimplePolicy: N attempts, no delay
- FixedPolicy: N attempts, constant delay between them
- ExponentialBackoffPolicy: N attempts, delay doubling with jitter
- RetryOn: only retry errors of given types, delegate the rest

All built-ins stop immediately on cancellation, whatever budget is left.

Policies hold mutable counters. Give each run its own instance (or call
``reset()`` between sequential runs); never share one across threads or tasks.

Example:
    >>> from retrycase import retry, exponential_backoff, retry_on
    >>> retry(exponential_backoff(5, 0.2), fetch_quote)
    >>> retry(retry_on(ConnectionError, TimeoutError, policy=fixed(3, 1.0)), fetch_quote)
"""

from __future__ import annotations

import asyncio
import inspect
import math
import random
import time
from datetime import timedelta
from collections.abc import Awaitable
from typing import Callable, Protocol, runtime_checkable

from retrycase.foundation.errors import ContractViolation, is_cancellation

from .backoff import RandomSource, next_backoff

Sleep = Callable[[float], object]
AsyncSleep = Callable[[float], Awaitable[object]]
Seconds = float | timedelta


@runtime_checkable
class RetryPolicy(Protocol):
    """Decides, given the error of a failed attempt, whether to try again."""

    def __call__(self, error: Exception) -> bool: ...


def _attempts(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ContractViolation(f"illegal use of api: attempts must be an int, got {type(value).__name__}")
    return value


def _seconds(name: str, value: object) -> float:
    if isinstance(value, timedelta):
        value = value.total_seconds()
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ContractViolation(f"illegal use of api: {name} must be seconds or timedelta, got {type(value).__name__}")
    if not value >= 0 or (isinstance(value, float) and not math.isfinite(value)):
        raise ContractViolation(f"illegal use of api: {name} must be finite and >= 0, got {value}")
    return float(value)


class _BudgetPolicy:
    """Attempt accounting shared by the built-in policies.

    ``next_delay`` advances the state and returns the seconds to wait before
    the next attempt, or None to stop. ``__call__`` and ``acall`` turn that into
    a blocking or awaitable decision.
    """

    __slots__ = ("_attempts", "_remaining")

    def __init__(self, attempts: int) -> None:
        self._attempts = _attempts(attempts)
        self._remaining = max(self._attempts, 0)

    @property
    def attempts(self) -> int:
        """Total invocations this policy permits, first attempt included."""
        return self._attempts

    @property
    def remaining(self) -> int:
        return self._remaining

    def reset(self) -> None:
        """Restore the construction-time budget for a new sequential run."""
        self._remaining = max(self._attempts, 0)

    def _spend(self, error: Exception) -> bool:
        # Cancellation stops without consuming budget
        if is_cancellation(error):
            return False
        self._remaining = max(self._remaining - 1, 0)
        return self._remaining > 0

    def next_delay(self, error: Exception) -> float | None:
        return 0.0 if self._spend(error) else None

    def __call__(self, error: Exception) -> bool:
        return self.next_delay(error) is not None

    async def acall(self, error: Exception) -> bool:
        return self.next_delay(error) is not None


class SimplePolicy(_BudgetPolicy):
    """Retry up to ``attempts`` total invocations with no delay."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"SimplePolicy(attempts={self._attempts}, remaining={self._remaining})"


class _DelayPolicy(_BudgetPolicy):
    """Budget policy that waits ``next_delay`` seconds before answering "retry".

    ``sleep`` blocks under ``retry()``; ``asleep`` is awaited under ``aretry()``
    so the delay stays cancellable with the task.
    """

    __slots__ = ("_sleep", "_asleep")

    def __init__(self, attempts: int, *, sleep: Sleep, asleep: AsyncSleep) -> None:
        super().__init__(attempts)
        if not callable(sleep) or not callable(asleep):
            raise ContractViolation("illegal use of api: sleep and asleep must be callable")
        self._sleep, self._asleep = sleep, asleep

    def __call__(self, error: Exception) -> bool:
        if (delay := self.next_delay(error)) is None:
            return False
        if delay > 0:
            self._sleep(delay)
        return True

    async def acall(self, error: Exception) -> bool:
        if (delay := self.next_delay(error)) is None:
            return False
        if delay > 0:
            await self._asleep(delay)
        return True


class FixedPolicy(_DelayPolicy):
    """Retry up to ``attempts`` total invocations, waiting ``delay`` seconds between them."""

    __slots__ = ("_delay",)

    def __init__(
        self,
        attempts: int,
        delay: Seconds,
        *,
        sleep: Sleep = time.sleep,
        asleep: AsyncSleep = asyncio.sleep,
    ) -> None:
        super().__init__(attempts, sleep=sleep, asleep=asleep)
        self._delay = _seconds("delay", delay)

    @property
    def delay(self) -> float:
        return self._delay

    def next_delay(self, error: Exception) -> float | None:
        return self._delay if self._spend(error) else None

    def __repr__(self) -> str:
        return f"FixedPolicy(attempts={self._attempts}, delay={self._delay}, remaining={self._remaining})"


class ExponentialBackoffPolicy(_DelayPolicy):
    """Retry up to ``attempts`` total invocations with jittered doubling delays.

    The first retry waits ``initial_delay``. Each later delay is
    ``2 * previous * jitter`` with jitter uniform in [0.25, 1.25), capped at
    ``max_delay`` when one is given.

    Attributes:
        attempts: Total invocations permitted
        initial_delay: Delay before the first retry, in seconds
        max_delay: Optional ceiling for any single delay
    """

    __slots__ = ("_initial", "_current", "_max_delay", "_rng")

    def __init__(
        self,
        attempts: int,
        initial_delay: Seconds,
        *,
        rng: RandomSource | None = None,
        sleep: Sleep = time.sleep,
        asleep: AsyncSleep = asyncio.sleep,
        max_delay: Seconds | None = None,
    ) -> None:
        super().__init__(attempts, sleep=sleep, asleep=asleep)
        self._max_delay = None if max_delay is None else _seconds("max_delay", max_delay)
        initial = _seconds("initial_delay", initial_delay)
        self._initial = initial if self._max_delay is None else min(initial, self._max_delay)
        self._current = self._initial
        if rng is not None and not isinstance(rng, RandomSource):
            raise ContractViolation("illegal use of api: rng must provide random() -> float")
        self._rng: RandomSource = rng if rng is not None else random.Random()

    @property
    def initial_delay(self) -> float:
        return self._initial

    @property
    def current_delay(self) -> float:
        """Delay the next retry will wait."""
        return self._current

    @property
    def max_delay(self) -> float | None:
        return self._max_delay

    def reset(self) -> None:
        super().reset()
        self._current = self._initial

    def next_delay(self, error: Exception) -> float | None:
        if not self._spend(error):
            return None
        delay = self._current
        self._current = next_backoff(delay, self._rng, self._max_delay)
        return delay

    def __repr__(self) -> str:
        return (
            f"ExponentialBackoffPolicy(attempts={self._attempts}, initial_delay={self._initial}, "
            f"current_delay={self._current:.3f}, remaining={self._remaining})"
        )


class RetryOn:
    """Retry only errors of the given types; everything else stops the run.

    Matching errors are handed to the wrapped policy, which owns the attempt
    budget and the delay.
    """

    __slots__ = ("_types", "_policy")

    def __init__(self, types: tuple[type[BaseException], ...], policy: RetryPolicy) -> None:
        if not types or not all(isinstance(t, type) and issubclass(t, BaseException) for t in types):
            raise ContractViolation("illegal use of api: retry_on needs at least one exception type")
        if policy is None or not callable(policy):
            raise ContractViolation("illegal use of api: retry_on needs a retry policy")
        self._types, self._policy = types, policy

    @property
    def types(self) -> tuple[type[BaseException], ...]:
        return self._types

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def _matches(self, error: Exception) -> bool:
        return not is_cancellation(error) and isinstance(error, self._types)

    def reset(self) -> None:
        if (reset := getattr(self._policy, "reset", None)) is not None:
            reset()

    def __call__(self, error: Exception) -> bool:
        return self._matches(error) and decide(self._policy, error)

    async def acall(self, error: Exception) -> bool:
        return self._matches(error) and await decide_async(self._policy, error)

    def __repr__(self) -> str:
        names = ", ".join(t.__name__ for t in self._types)
        return f"RetryOn([{names}], {self._policy!r})"


def decide(policy: RetryPolicy, error: Exception) -> bool:
    """Consult a policy from synchronous code."""
    verdict = policy(error)
    if inspect.isawaitable(verdict):
        if inspect.iscoroutine(verdict):
            verdict.close()
        raise ContractViolation("illegal use of api: async retry policy used from retry(); use aretry()")
    return bool(verdict)


async def decide_async(policy: RetryPolicy, error: Exception) -> bool:
    """Consult a policy from async code, preferring its non-blocking ``acall``."""
    if (acall := getattr(policy, "acall", None)) is not None:
        return bool(await acall(error))
    verdict = policy(error)
    if inspect.isawaitable(verdict):
        verdict = await verdict
    return bool(verdict)


# ─────────────────────────────────────────────────────────────────────────────
# Constructors
# ─────────────────────────────────────────────────────────────────────────────


def simple(attempts: int) -> SimplePolicy:
    """Policy permitting ``attempts`` invocations with no delay."""
    return SimplePolicy(attempts)


def fixed(
    attempts: int,
    delay: Seconds,
    *,
    sleep: Sleep = time.sleep,
    asleep: AsyncSleep = asyncio.sleep,
) -> FixedPolicy:
    """Policy permitting ``attempts`` invocations ``delay`` seconds apart.

    ``sleep`` waits under ``retry()``, ``asleep`` under ``aretry()``.
    """
    return FixedPolicy(attempts, delay, sleep=sleep, asleep=asleep)


def exponential_backoff(
    attempts: int,
    initial_delay: Seconds,
    *,
    rng: RandomSource | None = None,
    sleep: Sleep = time.sleep,
    asleep: AsyncSleep = asyncio.sleep,
    max_delay: Seconds | None = None,
) -> ExponentialBackoffPolicy:
    """Policy permitting ``attempts`` invocations with jittered doubling delays.

    ``sleep`` waits under ``retry()``, ``asleep`` under ``aretry()``.
    """
    return ExponentialBackoffPolicy(
        attempts, initial_delay, rng=rng, sleep=sleep, asleep=asleep, max_delay=max_delay
    )


def retry_on(*types: type[BaseException], policy: RetryPolicy) -> RetryOn:
    """Policy that only retries the given exception types, using ``policy`` for budget and delay."""
    return RetryOn(types, policy)
