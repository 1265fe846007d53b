"""Cancellation support: CancelToken for threads, checkpoint for asyncio tasks."""

from __future__ import annotations

from .cancel import CancelToken, checkpoint

__all__ = ["CancelToken", "checkpoint"]
