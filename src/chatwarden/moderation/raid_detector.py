from __future__ import annotations

from chatwarden.datatypes.event_datatypes import Event
from chatwarden.datatypes.identity_datatypes import UserID
from chatwarden.moderation.sliding_window import SlidingWindowTracker
from chatwarden.util.logger import get_logger

logger = get_logger("raid_detector")

# All joins share one history
JOIN_LOG_KEY = "__joins__"


class RaidDetector:
    """Signals a raid when ``threshold`` or more members join inside the raid window.

    The signal is one-shot per evaluation and is not debounced: every join that
    arrives while the window still holds ``threshold`` joins fires again. The
    caller decides whether a repeated escalation is harmful.
    """

    def __init__(self, threshold: int, time_frame_ms: int) -> None:
        self.threshold = threshold
        self.time_frame_ms = time_frame_ms
        self._tracker: SlidingWindowTracker[str] = SlidingWindowTracker()
        self.last_join_count: int = 0

    def evaluate(self, now_ms: int, user_id: UserID | None = None) -> bool:
        """Record a join at ``now_ms`` and return True when the raid threshold is met."""
        if user_id is not None:
            user_id = UserID(user_id)
        self._tracker.record(JOIN_LOG_KEY, Event(user_id=user_id, content=None, timestamp_ms=now_ms))
        self.last_join_count = self._tracker.count_matching(JOIN_LOG_KEY, now_ms, self.time_frame_ms)

        if self.last_join_count >= self.threshold:
            logger.warning(
                "[RAID] %d joins within %d ms (threshold %d)",
                self.last_join_count,
                self.time_frame_ms,
                self.threshold,
            )
            return True
        return False

    def prune(self, now_ms: int) -> int:
        return self._tracker.prune_all(now_ms, self.time_frame_ms)
