"""Per-execution options for the retry executor.

An option maps an ExecutionConfig to a new ExecutionConfig. Options apply in
the order given, before the first attempt, so later options win. New options
are plain functions and never change the executor's signature.

Example:
    >>> retry(simple(3), send, on_error(errors.append), label("send-invoice"))
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field

from retrycase.foundation.errors import ContractViolation

from .policy import RetryPolicy

ErrorHook = Callable[[Exception], object]


class ExecutionConfig(BaseModel):
    """Everything one retry run needs. Frozen once the options are applied.

    Attributes:
        policy: Decides whether to retry after each failure
        operation: Zero-argument callable being retried
        hook: Observes every failure before the policy does
        name: Label used in log messages
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,  # For RetryPolicy protocol
        extra="forbid",
        revalidate_instances="never",
    )

    policy: RetryPolicy = Field(repr=False)
    operation: Callable[[], object] = Field(repr=False)
    hook: ErrorHook | None = Field(default=None, repr=False)
    name: str | None = None

    @property
    def label(self) -> str:
        """Name for log messages, defaulting to the operation's qualified name."""
        return self.name or getattr(self.operation, "__qualname__", None) or type(self.operation).__name__

    def apply(self, options: Iterable[Option]) -> ExecutionConfig:
        """Apply options in order and return the final config."""
        config = self
        for opt in options:
            if not callable(opt):
                raise ContractViolation(f"illegal use of api: option must be callable, got {type(opt).__name__}")
            config = opt(config)
            if not isinstance(config, ExecutionConfig):
                raise ContractViolation("illegal use of api: option must return an ExecutionConfig")
        return config


Option = Callable[[ExecutionConfig], ExecutionConfig]


def on_error(hook: ErrorHook) -> Option:
    """Call ``hook(error)`` on every failed attempt, before the policy decides.

    The hook is for logging and metrics only: its return value is ignored and
    anything it raises is logged and suppressed.
    """
    # A None hook can only be a programming error
    if hook is None:
        raise ContractViolation("illegal use of api: cannot attach a missing error hook")
    if not callable(hook):
        raise ContractViolation(f"illegal use of api: error hook must be callable, got {type(hook).__name__}")

    def _apply(config: ExecutionConfig) -> ExecutionConfig:
        return config.model_copy(update={"hook": hook})

    return _apply


def label(name: str) -> Option:
    """Name the run in log messages."""
    if not isinstance(name, str) or not name.strip():
        raise ContractViolation("illegal use of api: label must be a non-empty string")

    def _apply(config: ExecutionConfig) -> ExecutionConfig:
        return config.model_copy(update={"name": name.strip()})

    return _apply
