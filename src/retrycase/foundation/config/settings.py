"""Environment-based configuration using pydantic-settings.

Provides validated retry and logging defaults from environment variables.
Supports .env files and nested configuration.

Example:
    >>> from retrycase.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.attempts
    3
    >>> policy = settings.retry.build_policy()  # fresh instance per call

    # Or with environment variables:
    # RETRYCASE_RETRY_STRATEGY=fixed
    # RETRYCASE_RETRY_ATTEMPTS=5
    # RETRYCASE_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from collections.abc import Awaitable
from functools import lru_cache
from typing import TYPE_CHECKING, Annotated, Callable, Literal

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from retrycase.runtime.retry.backoff import RandomSource
    from retrycase.runtime.retry.policy import ExponentialBackoffPolicy, FixedPolicy, SimplePolicy


class RetrySettings(BaseSettings):
    """Default retry policy configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYCASE_RETRY_",
        extra="ignore",
    )

    strategy: Literal["simple", "fixed", "exponential"] = "exponential"
    attempts: Annotated[int, Field(ge=0, description="Total invocations, first attempt included")] = 3
    delay: Annotated[float, Field(ge=0, allow_inf_nan=False, description="Fixed delay, or initial backoff delay, in seconds")] = 0.5
    max_delay: Annotated[float, Field(gt=0, allow_inf_nan=False, description="Cap on any single backoff delay")] | None = None

    @field_validator("strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, v: str) -> str:
        return v.strip().lower() if isinstance(v, str) else v

    @computed_field
    @property
    def max_wait(self) -> float | None:
        """Upper bound on total delay for a fully exhausted run (None when unbounded by jitter)."""
        retries = max(self.attempts - 1, 0)
        match self.strategy:
            case "simple": return 0.0
            case "fixed": return retries * self.delay
            case _:
                if self.max_delay is None:
                    return None
                return sum(min(self.delay * 2.5 ** i, self.max_delay) for i in range(retries))

    def build_policy(
        self,
        *,
        sleep: Callable[[float], object] | None = None,
        asleep: Callable[[float], Awaitable[object]] | None = None,
        rng: RandomSource | None = None,
    ) -> SimplePolicy | FixedPolicy | ExponentialBackoffPolicy:
        """Build a new policy from these settings. Call once per retry run."""
        from retrycase.runtime.retry.policy import exponential_backoff, fixed, simple

        kw = {k: v for k, v in (("sleep", sleep), ("asleep", asleep)) if v is not None}
        match self.strategy:
            case "simple":
                return simple(self.attempts)
            case "fixed":
                return fixed(self.attempts, self.delay, **kw)
            case _:
                return exponential_backoff(self.attempts, self.delay, rng=rng, max_delay=self.max_delay, **kw)


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYCASE_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class RetrycaseSettings(BaseSettings):
    """Root settings for retrycase.

    Loads configuration from environment variables with RETRYCASE_ prefix.

    Example environment variables:
        RETRYCASE_RETRY_STRATEGY=fixed
        RETRYCASE_RETRY_ATTEMPTS=5
        RETRYCASE_RETRY_DELAY=2.0
        RETRYCASE_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRYCASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> RetrycaseSettings:
    """Get the global settings instance (cached)."""
    return RetrycaseSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
