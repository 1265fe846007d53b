"""Outcome of ``try_retry``: Ok(value) on success, Err(error) once the policy gives up.

Both support structural pattern matching:

    >>> match try_retry(simple(3), load_config):
    ...     case Ok(config): use(config)
    ...     case Err(exhausted): log.warning(f"using defaults: {exhausted.last_error}")
"""

from __future__ import annotations

from typing import Generic, NoReturn, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


class Ok(Generic[T]):
    """The operation succeeded; ``value`` is what it returned."""

    __slots__ = ("value",)
    __match_args__ = ("value",)

    def __init__(self, value: T) -> None:
        self.value = value

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        raise RuntimeError(f"unwrap_err() on Ok: {self.value!r}")

    def unwrap_or(self, default: object) -> T:
        return self.value

    def __bool__(self) -> bool:
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Ok) and self.value == other.value

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


class Err(Generic[E]):
    """The run failed; ``error`` is normally the RetryExhaustedError."""

    __slots__ = ("error",)
    __match_args__ = ("error",)

    def __init__(self, error: E) -> None:
        self.error = error

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """Raise the stored error (RuntimeError if it is not an exception)."""
        if isinstance(self.error, BaseException):
            raise self.error
        raise RuntimeError(f"unwrap() on Err: {self.error}")

    def unwrap_err(self) -> E:
        return self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def __bool__(self) -> bool:
        return False

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Err) and self.error == other.error

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Union[Ok[T], Err[E]]
