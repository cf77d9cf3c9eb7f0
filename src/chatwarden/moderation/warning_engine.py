"""
Per-user warning counters and the escalation tiers derived from them.

Each user's state is a non-negative integer. ``warn`` moves it up by one,
``unwarn`` moves it down by one and refuses to go below zero. The tier used
by automatic moderation is a pure function of the current count:

=========  ========
count      tier
=========  ========
0          DELETE
1 - 2      WARN
3 and up   TIMEOUT
=========  ========

The warning limit is a separate, configurable threshold checked with
``reached_limit``; crossing it triggers an automatic timeout independent of
the tier table.
"""

from __future__ import annotations

from typing import Dict

from chatwarden.datatypes.action_datatypes import Tier
from chatwarden.datatypes.identity_datatypes import UserID
from chatwarden.moderation.errors import NoWarningsToRemove, ValidationError
from chatwarden.util.logger import get_logger

logger = get_logger("warning_engine")

WARN_TIER_AT = 1
TIMEOUT_TIER_AT = 3


class WarningEscalationEngine:
    """Owns the warning count of every user seen during the process lifetime.

    Entries are created on the first warning and never removed, even when the
    count drops back to zero.
    """

    def __init__(self) -> None:
        self._counts: Dict[UserID, int] = {}

    def count(self, user_id: UserID) -> int:
        """Current warning count; unknown users have zero and no state is created."""
        return self._counts.get(UserID(user_id), 0)

    def warn(self, user_id: UserID) -> int:
        user_id = UserID(user_id)
        new_count = self._counts.get(user_id, 0) + 1
        self._counts[user_id] = new_count
        logger.debug("[WARNINGS] %s now has %d warning(s)", user_id, new_count)
        return new_count

    def unwarn(self, user_id: UserID) -> int:
        """Remove one warning.

        Raises:
            NoWarningsToRemove: If the user is already at zero.
        """
        user_id = UserID(user_id)
        current = self._counts.get(user_id, 0)
        if current <= 0:
            raise NoWarningsToRemove(user_id)
        self._counts[user_id] = current - 1
        logger.debug("[WARNINGS] %s now has %d warning(s)", user_id, current - 1)
        return current - 1

    def tier_for(self, user_id: UserID) -> Tier:
        count = self.count(user_id)
        if count >= TIMEOUT_TIER_AT:
            return Tier.TIMEOUT
        if count >= WARN_TIER_AT:
            return Tier.WARN
        return Tier.DELETE

    def reached_limit(self, user_id: UserID, limit: int) -> bool:
        if limit < 1:
            raise ValidationError(f"Warning limit must be at least 1, got {limit}")
        return self.count(user_id) >= limit

    def snapshot(self) -> Dict[UserID, int]:
        """Copy of all counters, including users back at zero."""
        return dict(self._counts)
