from __future__ import annotations

from chatwarden.datatypes.event_datatypes import Event
from chatwarden.datatypes.identity_datatypes import UserID
from chatwarden.moderation.errors import ValidationError
from chatwarden.moderation.sliding_window import SlidingWindowTracker
from chatwarden.util.logger import get_logger

logger = get_logger("spam_detector")


class SpamDetector:
    """Flags users repeating the same message inside the spam window.

    Content equality is an exact, case-sensitive comparison of the raw text.
    Every evaluated message is recorded, including the ones that trip the
    threshold, so the rolling count stays accurate across repeated calls.
    """

    def __init__(
        self,
        threshold: int,
        time_frame_ms: int,
        tracker: SlidingWindowTracker[UserID] | None = None,
    ) -> None:
        self.threshold = threshold
        self.time_frame_ms = time_frame_ms
        self._tracker: SlidingWindowTracker[UserID] = tracker if tracker is not None else SlidingWindowTracker()

    @property
    def tracker(self) -> SlidingWindowTracker[UserID]:
        return self._tracker

    def evaluate(self, user_id: UserID, content: str, now_ms: int) -> bool:
        """Record the message and return True when more than ``threshold`` identical copies sit in the window."""
        if content is None:
            raise ValidationError("Spam evaluation requires message content (use '' for attachment-only messages)")
        user_id = UserID(user_id)

        self._tracker.record(user_id, Event(user_id=user_id, content=content, timestamp_ms=now_ms))
        duplicates = self._tracker.count_matching(
            user_id,
            now_ms,
            self.time_frame_ms,
            lambda event: event.content == content,
        )

        if duplicates > self.threshold:
            logger.debug(
                "[SPAM] User %s sent %d identical messages within %d ms (threshold %d)",
                user_id,
                duplicates,
                self.time_frame_ms,
                self.threshold,
            )
            return True
        return False

    def prune(self, now_ms: int) -> int:
        return self._tracker.prune_all(now_ms, self.time_frame_ms)
