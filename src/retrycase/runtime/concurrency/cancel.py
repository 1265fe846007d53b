"""Cancellation primitives for retried operations.

The executor never polls for cancellation itself. A caller hands a
CancelToken to its operation, the operation raises OperationCancelled when
the token fires, and every built-in policy treats that error as terminal.

Example:
    >>> token = CancelToken()
    >>> def fetch() -> bytes:
    ...     token.raise_if_cancelled()
    ...     return client.get(url)
    >>> retry(fixed(5, 2.0, sleep=token.sleep), fetch)  # delay wakes on cancel
    >>> token.cancel("shutting down")  # from another thread
"""

from __future__ import annotations

import asyncio
import threading

from retrycase.foundation.errors import OperationCancelled


class CancelToken:
    """Thread-safe, one-shot cancellation signal for synchronous callers."""

    __slots__ = ("_event", "_reason", "_lock")

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> bool:
        """Fire the token. Returns False if it had already fired."""
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
            return True

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled(self._reason or "operation cancelled")

    def sleep(self, seconds: float) -> None:
        """Block for up to ``seconds``, returning early once the token fires.

        Pass as the ``sleep`` of a delaying policy to make its delay cancellable.
        """
        self._event.wait(seconds)

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled}, reason={self._reason!r})"


async def checkpoint() -> None:
    """Cooperative cancellation point: yields to the event loop once."""
    await asyncio.sleep(0)
