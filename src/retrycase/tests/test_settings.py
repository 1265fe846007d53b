"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from retrycase import (
    ExponentialBackoffPolicy,
    FixedPolicy,
    RetryExhaustedError,
    RetrySettings,
    SimplePolicy,
    clear_settings_cache,
    get_settings,
    retry,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> object:
    """Isolate tests from RETRYCASE_* variables and the settings cache."""
    import os
    for key in [k for k in os.environ if k.startswith("RETRYCASE_")]:
        monkeypatch.delenv(key)
    monkeypatch.chdir(os.path.dirname(__file__))  # no stray .env
    clear_settings_cache()
    yield
    clear_settings_cache()


def test_defaults() -> None:
    s = RetrySettings()
    assert s.strategy == "exponential"
    assert s.attempts == 3
    assert s.delay == 0.5
    assert s.max_delay is None


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYCASE_RETRY_STRATEGY", "Fixed")
    monkeypatch.setenv("RETRYCASE_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("RETRYCASE_RETRY_DELAY", "0.25")

    s = get_settings().retry
    assert s.strategy == "fixed"
    assert s.attempts == 5
    assert s.delay == 0.25


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_settings()
    monkeypatch.setenv("RETRYCASE_RETRY_ATTEMPTS", "9")
    assert get_settings() is first
    clear_settings_cache()
    assert get_settings().retry.attempts == 9


def test_invalid_values_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYCASE_RETRY_DELAY", "-1")
    with pytest.raises(ValidationError):
        RetrySettings()
    with pytest.raises(ValidationError):
        RetrySettings(strategy="linear")
    with pytest.raises(ValidationError):
        RetrySettings(delay=float("inf"))
    with pytest.raises(ValidationError):
        RetrySettings(max_delay=float("inf"))


@pytest.mark.parametrize(
    ("strategy", "expected"),
    [("simple", SimplePolicy), ("fixed", FixedPolicy), ("exponential", ExponentialBackoffPolicy)],
)
def test_build_policy_type(strategy: str, expected: type) -> None:
    policy = RetrySettings(strategy=strategy, attempts=4, delay=0.1).build_policy()
    assert isinstance(policy, expected)
    assert policy.attempts == 4


def test_build_policy_returns_fresh_instances() -> None:
    s = RetrySettings(strategy="simple", attempts=2)
    assert s.build_policy() is not s.build_policy()


def test_built_policy_drives_retry() -> None:
    sleeps: list[float] = []
    policy = RetrySettings(strategy="fixed", attempts=3, delay=2.0).build_policy(sleep=sleeps.append)

    calls = []

    def operation() -> None:
        calls.append(1)
        raise RuntimeError("down")

    with pytest.raises(RetryExhaustedError):
        retry(policy, operation)
    assert len(calls) == 3
    assert sleeps == [2.0, 2.0]


def test_max_delay_is_applied_to_backoff() -> None:
    policy = RetrySettings(strategy="exponential", attempts=3, delay=5.0, max_delay=1.0).build_policy()
    assert isinstance(policy, ExponentialBackoffPolicy)
    assert policy.initial_delay == 1.0


def test_max_wait() -> None:
    assert RetrySettings(strategy="simple").max_wait == 0.0
    assert RetrySettings(strategy="fixed", attempts=4, delay=1.5).max_wait == 4.5
    assert RetrySettings(strategy="exponential").max_wait is None
    assert RetrySettings(strategy="exponential", attempts=3, delay=1.0, max_delay=2.0).max_wait == 3.0


def test_logging_settings_normalize_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYCASE_LOG_LEVEL", "debug")
    monkeypatch.setenv("RETRYCASE_LOG_FORMAT", "json")
    s = get_settings().logging
    assert s.level == "DEBUG"
    assert s.format == "json"
