# src/etlguard/engine/clock.py
"""Clock abstraction for the validation cache.

The engine stamps cached summaries with monotonic time and compares
against the configured TTL. Production code uses SystemClock (the
default); tests inject MockClock to expire entries without sleeping.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Source of monotonic time in seconds."""

    def monotonic(self) -> float: ...


class SystemClock:
    """Clock backed by time.monotonic()."""

    def monotonic(self) -> float:
        return time.monotonic()


class MockClock:
    """Controllable clock for deterministic cache tests.

    Example:
        clock = MockClock()
        engine = ValidationEngine(registry, clock=clock)

        first = engine.validate_graph(graph)
        clock.advance(10.0)  # past the 5s default TTL
        assert engine.validate_graph(graph) is not first
    """

    def __init__(self, start: float = 0.0) -> None:
        self._current = start

    def monotonic(self) -> float:
        return self._current

    def advance(self, seconds: float) -> None:
        """Move time forward.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self._current += seconds

    def set(self, value: float) -> None:
        """Set an absolute time; may move backwards."""
        self._current = value


DEFAULT_CLOCK: Clock = SystemClock()
