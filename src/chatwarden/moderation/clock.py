"""
Time sources for the moderation engine.

All windows and cooldowns are evaluated against integer milliseconds handed
out by a ``ClockSource``. Production code uses the monotonic clock; tests and
replays inject a ``ManualClock`` they can advance by hand.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

from chatwarden.moderation.errors import ValidationError


@runtime_checkable
class ClockSource(Protocol):
    """Anything that can report the current time in milliseconds."""

    def now_ms(self) -> int:
        ...


class MonotonicClock:
    """Clock backed by ``time.monotonic_ns``; never goes backwards."""

    def now_ms(self) -> int:
        return time.monotonic_ns() // 1_000_000


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start_ms: int = 0) -> None:
        if start_ms < 0:
            raise ValidationError(f"Clock start must not be negative: {start_ms}")
        self._now_ms = start_ms

    def now_ms(self) -> int:
        return self._now_ms

    def advance(self, delta_ms: int) -> int:
        """Move the clock forward and return the new time."""
        if delta_ms < 0:
            raise ValidationError(f"Clock cannot move backwards (delta {delta_ms})")
        self._now_ms += delta_ms
        return self._now_ms

    def set(self, now_ms: int) -> None:
        if now_ms < self._now_ms:
            raise ValidationError(f"Clock cannot move backwards ({self._now_ms} -> {now_ms})")
        self._now_ms = now_ms
