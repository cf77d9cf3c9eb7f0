"""
Executor interface between the moderation engine and the chat platform.

The engine only produces decisions. An ``ActionExecutor`` carries them out
(delete the message, time the member out, raise verification after a raid)
and signals failure by raising. ``LoggingActionExecutor`` is the bundled
implementation used by the console; platform integrations subclass
``ActionExecutor``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from chatwarden.datatypes.action_datatypes import ModerationDecision
from chatwarden.util.duration import format_duration
from chatwarden.util.logger import get_logger

logger = get_logger("action_executor")


class ActionExecutor(ABC):
    """Performs platform actions for moderation decisions."""

    @abstractmethod
    async def execute(self, decision: ModerationDecision) -> None:
        """Carry out ``decision``; raise on failure."""

    @abstractmethod
    async def escalate_raid(self, join_count: int) -> None:
        """Apply guild-wide raid protection (e.g. highest verification level); raise on failure."""


class LoggingActionExecutor(ActionExecutor):
    """Executor that performs nothing and logs every request.

    Handy for dry runs: decisions are kept in ``executed`` and raid
    escalations in ``raid_escalations``.
    """

    def __init__(self) -> None:
        self.executed: List[ModerationDecision] = []
        self.raid_escalations: List[int] = []

    async def execute(self, decision: ModerationDecision) -> None:
        self.executed.append(decision)
        if decision.timeout_ms:
            logger.info(
                "[DRY RUN] %s %s for %s (%s)",
                decision.action,
                decision.target_user_id,
                format_duration(decision.timeout_ms),
                decision.reason,
            )
        else:
            logger.info("[DRY RUN] %s %s (%s)", decision.action, decision.target_user_id, decision.reason)

    async def escalate_raid(self, join_count: int) -> None:
        self.raid_escalations.append(join_count)
        logger.warning("[DRY RUN] Raid detected (%d recent joins); raising verification level", join_count)
