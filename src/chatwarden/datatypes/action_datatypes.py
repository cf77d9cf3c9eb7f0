"""
Action types and data structures for moderation decisions.

This module defines the ActionType and Tier enums, the ModerationDecision
returned for every inbound event, and the ActionOutcome the executor reports
back once a decision has been carried out.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from chatwarden.datatypes.identity_datatypes import UserID


class ActionType(Enum):
    """Enumeration of decisions the engine can hand to the executor."""

    NONE = "none"
    DELETE = "delete"
    WARN = "warn"
    TIMEOUT = "timeout"
    DELETE_AND_TIMEOUT = "delete_and_timeout"
    REJECT = "reject"
    RAID_ESCALATION = "raid_escalation"

    def __str__(self) -> str:
        return self.value


class Tier(Enum):
    """Escalation level chosen from a user's accumulated warning count."""

    DELETE = "delete"
    WARN = "warn"
    TIMEOUT = "timeout"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ModerationDecision:
    """Data structure representing one moderation decision.

    Attributes:
        action: Type of action to perform.
        target_user_id: User the action applies to; ``None`` for guild-wide raid escalations.
        reason: Short machine-friendly reason ("spam", "cooldown", "blocked term: x", ...).
        timeout_ms: Timeout length for ``TIMEOUT``/``DELETE_AND_TIMEOUT``, 0 otherwise.
        warning_count: Warning count after the decision was taken, when warnings were involved.
    """

    action: ActionType
    target_user_id: UserID | None = None
    reason: str = ""
    timeout_ms: int = 0
    warning_count: int | None = None

    @classmethod
    def none(cls, target_user_id: UserID | None = None) -> "ModerationDecision":
        return cls(action=ActionType.NONE, target_user_id=target_user_id)

    @property
    def is_actionable(self) -> bool:
        """True when the executor has something to do on the platform."""
        return self.action is not ActionType.NONE

    def to_wire_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable dictionary representing this decision."""
        return {
            "action": self.action.value,
            "target_user_id": str(self.target_user_id) if self.target_user_id is not None else None,
            "reason": self.reason,
            "timeout_ms": self.timeout_ms,
            "warning_count": self.warning_count,
        }


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    """Result of executing a decision, as reported back by the executor."""

    decision: ModerationDecision
    success: bool
    error: str | None = None
