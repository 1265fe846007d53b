"""Tests for the async retry executor."""

from __future__ import annotations

import asyncio
import time

import pytest

from retrycase import (
    ContractViolation,
    RetryExhaustedError,
    aretry,
    exponential_backoff,
    fixed,
    on_error,
    retrying,
    simple,
)


class AsyncFlaky:
    """Async operation failing ``failures`` times before returning ``value``."""

    def __init__(self, failures: int, value: object = "ok") -> None:
        self.failures, self.value = failures, value
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        await asyncio.sleep(0)
        if self.calls <= self.failures:
            raise ConnectionError("boom")
        return self.value


@pytest.mark.asyncio
async def test_aretry_succeeds_after_failures() -> None:
    op, seen = AsyncFlaky(failures=2), []
    assert await aretry(simple(3), op, on_error(seen.append)) == "ok"
    assert op.calls == 3
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_aretry_exhausts_with_last_error() -> None:
    op = AsyncFlaky(failures=100)
    with pytest.raises(RetryExhaustedError) as exc_info:
        await aretry(fixed(3, 0.001), op)
    assert op.calls == 3
    assert isinstance(exc_info.value.last_error, ConnectionError)


@pytest.mark.asyncio
async def test_aretry_success_is_single_call() -> None:
    op = AsyncFlaky(failures=0, value=42)
    assert await aretry(exponential_backoff(5, 0.01), op) == 42
    assert op.calls == 1


@pytest.mark.asyncio
async def test_aretry_waits_with_injected_async_sleep() -> None:
    awaited: list[float] = []
    blocking: list[float] = []

    async def asleep(seconds: float) -> None:
        awaited.append(seconds)

    op = AsyncFlaky(failures=1)
    start = time.perf_counter()
    assert await aretry(fixed(2, 30.0, sleep=blocking.append, asleep=asleep), op) == "ok"
    assert time.perf_counter() - start < 1.0
    assert awaited == [30.0]
    assert blocking == []


@pytest.mark.asyncio
async def test_cancelling_task_interrupts_delay() -> None:
    op = AsyncFlaky(failures=100)
    task = asyncio.create_task(aretry(fixed(5, 30.0), op))
    await asyncio.sleep(0.05)

    start = time.perf_counter()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert time.perf_counter() - start < 1.0
    assert op.calls == 1


@pytest.mark.asyncio
async def test_cancelled_operation_propagates_unwrapped() -> None:
    calls = []

    async def operation() -> None:
        calls.append(1)
        raise asyncio.CancelledError

    with pytest.raises(asyncio.CancelledError):
        await aretry(simple(3), operation)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_async_custom_policy_is_awaited() -> None:
    decisions = []

    async def policy(error: Exception) -> bool:
        decisions.append(error)
        return len(decisions) < 2

    op = AsyncFlaky(failures=100)
    with pytest.raises(RetryExhaustedError):
        await aretry(policy, op)
    assert op.calls == 2


@pytest.mark.asyncio
async def test_sync_custom_policy_works_with_aretry() -> None:
    op = AsyncFlaky(failures=1)
    assert await aretry(lambda e: isinstance(e, ConnectionError), op) == "ok"


@pytest.mark.asyncio
async def test_non_awaitable_operation_is_contract_violation() -> None:
    with pytest.raises(ContractViolation):
        await aretry(simple(3), lambda: 1)


@pytest.mark.asyncio
async def test_missing_policy_aborts_async() -> None:
    op = AsyncFlaky(failures=0)
    with pytest.raises(ContractViolation):
        await aretry(None, op)  # type: ignore[arg-type]
    assert op.calls == 0


@pytest.mark.asyncio
async def test_concurrent_runs_with_own_policies_are_independent() -> None:
    ops = [AsyncFlaky(failures=i) for i in range(4)]
    results = await asyncio.gather(*(aretry(simple(5), op) for op in ops))
    assert results == ["ok"] * 4
    assert [op.calls for op in ops] == [1, 2, 3, 4]


@pytest.mark.asyncio
async def test_retrying_wraps_coroutine_functions() -> None:
    attempts = {"n": 0}

    @retrying(lambda: fixed(3, 0.001))
    async def fetch(key: str) -> str:
        attempts["n"] += 1
        if attempts["n"] < 3:
            raise TimeoutError(key)
        return key.upper()

    assert await fetch("quote") == "QUOTE"
    assert attempts["n"] == 3
