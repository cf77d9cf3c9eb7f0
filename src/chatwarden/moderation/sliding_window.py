"""
Keyed sliding-window event tracker.

Events are appended per key and pruned lazily when a key is read: an entry
with ``now - timestamp >= window`` is removed before any count is taken, so an
expired event never contributes to a threshold. There are no background
timers; pruning is driven entirely by the timestamps callers pass in.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Dict, Generic, Hashable, Tuple, TypeVar

from chatwarden.datatypes.event_datatypes import Event, validate_timestamp
from chatwarden.moderation.errors import ValidationError

K = TypeVar("K", bound=Hashable)

EventPredicate = Callable[[Event], bool]


def _validate_window(window_ms: int) -> None:
    if isinstance(window_ms, bool) or not isinstance(window_ms, int) or window_ms <= 0:
        raise ValidationError(f"Window must be a positive number of milliseconds, got {window_ms!r}")


class SlidingWindowTracker(Generic[K]):
    """Records timestamped events per key and counts the ones inside a trailing window.

    Each key holds a deque ordered oldest-first. Timestamps recorded under one
    key must be non-decreasing, which keeps pruning a pop from the left.
    Keys whose history becomes empty are dropped.
    """

    def __init__(self) -> None:
        self._histories: Dict[K, Deque[Event]] = {}

    def record(self, key: K, event: Event) -> None:
        """Append ``event`` to the history of ``key``.

        Raises:
            ValidationError: If the event is older than the newest event already recorded for ``key``.
        """
        history = self._histories.get(key)
        if history is None:
            history = self._histories[key] = deque()
        elif history and event.timestamp_ms < history[-1].timestamp_ms:
            raise ValidationError(
                f"Event at {event.timestamp_ms} is older than the newest recorded event "
                f"at {history[-1].timestamp_ms} for key {key!r}"
            )
        history.append(event)

    def count_matching(
        self,
        key: K,
        now_ms: int,
        window_ms: int,
        predicate: EventPredicate | None = None,
    ) -> int:
        """Prune expired entries for ``key`` and count the remaining ones matching ``predicate``.

        All remaining entries are counted when ``predicate`` is None.
        """
        validate_timestamp(now_ms)
        _validate_window(window_ms)

        history = self._histories.get(key)
        if history is None:
            return 0

        self._prune(history, now_ms, window_ms)
        if not history:
            del self._histories[key]
            return 0

        if predicate is None:
            return len(history)
        return sum(1 for event in history if predicate(event))

    def prune_all(self, now_ms: int, window_ms: int) -> int:
        """Prune every key and drop the empty ones. Returns the number of events removed."""
        validate_timestamp(now_ms)
        _validate_window(window_ms)

        removed = 0
        for key in list(self._histories):
            history = self._histories[key]
            removed += self._prune(history, now_ms, window_ms)
            if not history:
                del self._histories[key]
        return removed

    def history(self, key: K) -> Tuple[Event, ...]:
        """Snapshot of the (possibly unpruned) events recorded for ``key``."""
        return tuple(self._histories.get(key, ()))

    def __len__(self) -> int:
        return len(self._histories)

    @staticmethod
    def _prune(history: Deque[Event], now_ms: int, window_ms: int) -> int:
        removed = 0
        while history and now_ms - history[0].timestamp_ms >= window_ms:
            history.popleft()
            removed += 1
        return removed
