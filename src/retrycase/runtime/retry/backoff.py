"""Delay growth for exponential backoff.

Each retry doubles the previous delay and scales it by a jitter factor
drawn uniformly from [0.25, 1.25):

    next = 2 * delay * jitter

Jitter spreads out callers that failed together so they do not retry in
lockstep. The randomness source is passed in, never taken from the global
``random`` state, so tests can pin it.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

JITTER_MIN = 0.25
JITTER_SPAN = 1.0
GROWTH = 2.0


@runtime_checkable
class RandomSource(Protocol):
    """Anything with ``random() -> float`` in [0, 1), e.g. ``random.Random``."""

    def random(self) -> float: ...


def jitter_factor(rng: RandomSource) -> float:
    """Multiplier in [0.25, 1.25)."""
    return JITTER_MIN + rng.random() * JITTER_SPAN


def next_backoff(delay: float, rng: RandomSource, max_delay: float | None = None) -> float:
    """Delay to use after ``delay``, optionally capped at ``max_delay``."""
    d = GROWTH * delay * jitter_factor(rng)
    return d if max_delay is None else min(d, max_delay)
