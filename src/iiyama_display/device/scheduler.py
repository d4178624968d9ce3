"""Adaptive poll interval control.

A single ``fast_until`` timestamp decides between the fast and the slow poll
interval. Opening a fast window can only move that timestamp forward.
"""

from __future__ import annotations

from typing import Final

SLOW_POLL_FLOOR_SECONDS: Final = 5
FAST_POLL_FLOOR_SECONDS: Final = 2


class PollScheduler:
    """Chooses the next poll interval."""

    def __init__(self) -> None:
        self.fast_until: float = 0.0

    def enter_fast_poll(self, seconds: float, now: float) -> None:
        """Keep polling fast for at least ``seconds`` from ``now``.

        Non-positive durations are ignored; a window that already reaches
        further is left untouched.
        """
        if seconds <= 0:
            return
        until = now + seconds
        self.fast_until = max(until, self.fast_until)

    def is_fast(self, now: float) -> bool:
        """True while the fast window is open."""
        return now < self.fast_until

    def next_interval(self, now: float, slow_seconds: int, fast_seconds: int) -> int:
        """Return the next poll interval in seconds (floors applied)."""
        slow = max(SLOW_POLL_FLOOR_SECONDS, int(slow_seconds))
        fast = max(FAST_POLL_FLOOR_SECONDS, int(fast_seconds))
        return fast if self.is_fast(now) else slow
