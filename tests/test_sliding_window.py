"""Tests for the keyed sliding-window tracker."""

import pytest

from chatwarden.datatypes.event_datatypes import Event
from chatwarden.moderation.errors import ValidationError
from chatwarden.moderation.sliding_window import SlidingWindowTracker


def _event(ts: int, content: str = "hi") -> Event:
    return Event(user_id=None, content=content, timestamp_ms=ts)


class TestCountMatching:
    """Counting and pruning behaviour."""

    def test_counts_all_entries_without_predicate(self):
        tracker = SlidingWindowTracker()
        for ts in (0, 100, 200):
            tracker.record("a", _event(ts))

        assert tracker.count_matching("a", 200, 1000) == 3

    def test_predicate_filters_entries(self):
        tracker = SlidingWindowTracker()
        tracker.record("a", _event(0, "x"))
        tracker.record("a", _event(10, "y"))
        tracker.record("a", _event(20, "x"))

        assert tracker.count_matching("a", 20, 1000, lambda e: e.content == "x") == 2

    def test_entry_exactly_window_old_is_pruned(self):
        tracker = SlidingWindowTracker()
        tracker.record("a", _event(0))
        tracker.record("a", _event(500))

        assert tracker.count_matching("a", 1000, 1000) == 1
        assert tracker.history("a") == (_event(500),)

    def test_pruned_entries_never_reappear(self):
        tracker = SlidingWindowTracker()
        tracker.record("a", _event(0))
        assert tracker.count_matching("a", 5000, 1000) == 0

        for ts in range(5000, 5010):
            tracker.record("a", _event(ts))

        assert tracker.count_matching("a", 5009, 1000) == 10

    def test_empty_key_is_dropped(self):
        tracker = SlidingWindowTracker()
        tracker.record("a", _event(0))
        tracker.count_matching("a", 10_000, 1000)

        assert tracker.history("a") == ()
        assert len(tracker) == 0

    def test_unknown_key_counts_zero(self):
        assert SlidingWindowTracker().count_matching("missing", 0, 1000) == 0

    def test_pruning_is_idempotent(self):
        tracker = SlidingWindowTracker()
        for ts in (0, 400, 800):
            tracker.record("a", _event(ts))

        first = tracker.count_matching("a", 1200, 1000)
        second = tracker.count_matching("a", 1200, 1000)
        assert first == second == 2

    def test_keys_are_independent(self):
        tracker = SlidingWindowTracker()
        tracker.record("a", _event(0))
        tracker.record("b", _event(0))
        tracker.record("b", _event(1))

        assert tracker.count_matching("a", 1, 1000) == 1
        assert tracker.count_matching("b", 1, 1000) == 2


class TestValidation:
    """Malformed input is rejected."""

    def test_negative_now_rejected(self):
        with pytest.raises(ValidationError):
            SlidingWindowTracker().count_matching("a", -1, 1000)

    @pytest.mark.parametrize("window", [0, -5])
    def test_non_positive_window_rejected(self, window):
        with pytest.raises(ValidationError):
            SlidingWindowTracker().count_matching("a", 0, window)

    def test_out_of_order_event_rejected(self):
        tracker = SlidingWindowTracker()
        tracker.record("a", _event(100))
        with pytest.raises(ValidationError):
            tracker.record("a", _event(50))

    def test_negative_event_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            _event(-1)


def test_prune_all_sweeps_every_key():
    tracker = SlidingWindowTracker()
    tracker.record("a", _event(0))
    tracker.record("b", _event(0))
    tracker.record("b", _event(900))

    removed = tracker.prune_all(1000, 500)

    assert removed == 2
    assert tracker.history("a") == ()
    assert tracker.history("b") == (_event(900),)
