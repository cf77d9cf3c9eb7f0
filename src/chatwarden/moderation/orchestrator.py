"""
Moderation orchestrator: one decision per inbound event.

The orchestrator owns every piece of per-user state (message histories, join
log, warning counters, cooldowns, blocklist) for one community. It never talks
to the chat platform itself; it returns a ``ModerationDecision`` and later
receives the executor's ``ActionOutcome`` for logging.

Message pipeline, first match wins:

1. spam (identical messages over the threshold) -> DELETE_AND_TIMEOUT
2. blocked term or blocked author -> tier chosen from the warning count
3. prefixed command while on cooldown -> REJECT (a bare prefix is not a
   command and never starts a cooldown)
4. otherwise -> NONE

Escalation order for step 2 is decide-then-increment: the tier is read from
the count as it stands, then the WARN and TIMEOUT tiers add a warning before
the decision is returned. A user at zero warnings only ever gets DELETE until
a moderator warns them manually.
"""

from __future__ import annotations

from collections import deque
from dataclasses import replace
from typing import Deque, Dict, FrozenSet, List, Tuple

from chatwarden.configuration.policy_settings import PolicySettings
from chatwarden.datatypes.action_datatypes import ActionOutcome, ActionType, ModerationDecision, Tier
from chatwarden.datatypes.event_datatypes import JoinEvent, MessageEvent
from chatwarden.datatypes.identity_datatypes import UserID
from chatwarden.moderation.clock import ClockSource, MonotonicClock
from chatwarden.moderation.content_policy import ContentPolicy
from chatwarden.moderation.cooldown_gate import CooldownGate
from chatwarden.moderation.errors import NotAuthorized
from chatwarden.moderation.raid_detector import RaidDetector
from chatwarden.moderation.spam_detector import SpamDetector
from chatwarden.moderation.warning_engine import WarningEscalationEngine
from chatwarden.util.duration import format_duration, require_duration
from chatwarden.util.logger import get_logger

logger = get_logger("orchestrator")

REASON_SPAM = "spam"
REASON_COOLDOWN = "cooldown"
REASON_BLOCKED_USER = "blocked user"
REASON_WARNING_LIMIT = "warning limit reached"


def require_privileged(is_privileged: bool, operation: str) -> None:
    """Authorization precondition for moderator-only operations.

    Raises:
        NotAuthorized: If the caller is not privileged.
    """
    if not is_privileged:
        logger.warning("[AUTH] Rejected unprivileged call to '%s'", operation)
        raise NotAuthorized(operation)


class ModerationOrchestrator:
    """
    Composes the detectors, policy, warning engine and cooldown gate.

    Attributes:
        clock: Time source used by operations that are not driven by an event timestamp.
    """

    def __init__(self, settings: PolicySettings | None = None, clock: ClockSource | None = None) -> None:
        self._settings: PolicySettings = settings or PolicySettings()
        self.clock: ClockSource = clock or MonotonicClock()

        self._spam = SpamDetector(self._settings.spam_threshold, self._settings.spam_time_frame_ms)
        self._raid = RaidDetector(self._settings.raid_threshold, self._settings.raid_time_frame_ms)
        self._content_policy = ContentPolicy(self._settings.blocked_terms, self._settings.blocked_users)
        self._warnings = WarningEscalationEngine()
        self._cooldowns = CooldownGate()
        self._outcomes: Deque[ActionOutcome] = deque(maxlen=self._settings.audit_log_size)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def settings(self) -> PolicySettings:
        return self._settings

    def update_setting(self, key: str, raw_value: str, *, is_privileged: bool) -> PolicySettings:
        """Change one policy setting live and return the new snapshot.

        Raises:
            NotAuthorized: If the caller is not privileged.
            ConfigurationError: On unknown keys or invalid values.
        """
        require_privileged(is_privileged, "config")
        self._apply_settings(self._settings.with_update(key, raw_value))
        logger.info("[SETTINGS] %s updated to %r", PolicySettings.canonical_key(key), raw_value)
        return self._settings

    def _apply_settings(self, settings: PolicySettings) -> None:
        self._settings = settings
        self._spam.threshold = settings.spam_threshold
        self._spam.time_frame_ms = settings.spam_time_frame_ms
        self._raid.threshold = settings.raid_threshold
        self._raid.time_frame_ms = settings.raid_time_frame_ms
        self._content_policy.set_blocked_terms(settings.blocked_terms)
        if self._outcomes.maxlen != settings.audit_log_size:
            self._outcomes = deque(self._outcomes, maxlen=settings.audit_log_size)

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    def is_command(self, content: str) -> bool:
        """True when ``content`` is the prefix followed by a command name, the same rule ``CommandInvocation.parse`` applies."""
        prefix = self._settings.command_prefix
        return content.startswith(prefix) and bool(content[len(prefix):].strip())

    def on_message(self, event: MessageEvent) -> ModerationDecision:
        """Run the message pipeline and return the decision for ``event``."""
        settings = self._settings
        author = event.user_id

        if self._spam.evaluate(author, event.content, event.timestamp_ms):
            logger.info("[MODERATION] Spam from %s; deleting and timing out", author)
            return ModerationDecision(
                action=ActionType.DELETE_AND_TIMEOUT,
                target_user_id=author,
                reason=REASON_SPAM,
                timeout_ms=settings.spam_timeout_ms,
            )

        term = self._content_policy.violating_term(event.content)
        if term is not None or self._content_policy.is_blocked_user(author):
            reason = f"blocked term: {term}" if term is not None else REASON_BLOCKED_USER
            return self._escalate(author, reason, settings)

        if self.is_command(event.content):
            if not self._cooldowns.try_acquire(
                author, event.timestamp_ms, settings.command_cooldown_ms, event.is_privileged
            ):
                logger.debug(
                    "[COOLDOWN] Rejected command from %s (%d ms left)",
                    author,
                    self._cooldowns.remaining_ms(author, event.timestamp_ms),
                )
                return ModerationDecision(action=ActionType.REJECT, target_user_id=author, reason=REASON_COOLDOWN)

        return ModerationDecision.none(author)

    def _escalate(self, author: UserID, reason: str, settings: PolicySettings) -> ModerationDecision:
        tier = self._warnings.tier_for(author)

        if tier is Tier.DELETE:
            decision = ModerationDecision(
                action=ActionType.DELETE,
                target_user_id=author,
                reason=reason,
                warning_count=self._warnings.count(author),
            )
        elif tier is Tier.WARN:
            count = self._warnings.warn(author)
            if self._warnings.reached_limit(author, settings.warning_limit):
                decision = ModerationDecision(
                    action=ActionType.TIMEOUT,
                    target_user_id=author,
                    reason=f"{REASON_WARNING_LIMIT} ({reason})",
                    timeout_ms=settings.warning_limit_timeout_ms,
                    warning_count=count,
                )
            else:
                decision = ModerationDecision(
                    action=ActionType.WARN,
                    target_user_id=author,
                    reason=reason,
                    warning_count=count,
                )
        else:
            count = self._warnings.warn(author)
            decision = ModerationDecision(
                action=ActionType.TIMEOUT,
                target_user_id=author,
                reason=reason,
                timeout_ms=settings.content_timeout_ms,
                warning_count=count,
            )

        logger.info(
            "[MODERATION] %s tier for %s (%s) -> %s",
            tier,
            author,
            reason,
            decision.action,
        )
        return decision

    def on_join(self, event: JoinEvent) -> bool:
        """Record a join and return True when it completes a raid burst."""
        return self._raid.evaluate(event.timestamp_ms, event.user_id)

    @property
    def last_join_count(self) -> int:
        return self._raid.last_join_count

    # ------------------------------------------------------------------
    # Manual moderation operations
    # ------------------------------------------------------------------

    def warn_user(self, target: UserID, *, is_privileged: bool, reason: str = "manual warning") -> Tuple[ModerationDecision, ...]:
        """Add a warning; also time the user out once the warning limit is reached."""
        require_privileged(is_privileged, "warn")
        target = UserID(target)
        count = self._warnings.warn(target)
        decisions: List[ModerationDecision] = [
            ModerationDecision(action=ActionType.WARN, target_user_id=target, reason=reason, warning_count=count)
        ]
        if self._warnings.reached_limit(target, self._settings.warning_limit):
            decisions.append(
                ModerationDecision(
                    action=ActionType.TIMEOUT,
                    target_user_id=target,
                    reason=REASON_WARNING_LIMIT,
                    timeout_ms=self._settings.warning_limit_timeout_ms,
                    warning_count=count,
                )
            )
        logger.info("[MODERATION] Warned %s manually; total warnings: %d", target, count)
        return tuple(decisions)

    def unwarn_user(self, target: UserID, *, is_privileged: bool) -> int:
        """Remove one warning and return the remaining count.

        Raises:
            NoWarningsToRemove: If the target has no warnings.
        """
        require_privileged(is_privileged, "unwarn")
        remaining = self._warnings.unwarn(target)
        logger.info("[MODERATION] Unwarned %s; remaining warnings: %d", target, remaining)
        return remaining

    def warnings_for(self, target: UserID) -> int:
        return self._warnings.count(target)

    def warning_counts(self) -> Dict[UserID, int]:
        return self._warnings.snapshot()

    def blacklist_user(self, target: UserID, *, is_privileged: bool) -> bool:
        require_privileged(is_privileged, "blacklist")
        added = self._content_policy.add_blocked_user(target)
        if added:
            self._settings = replace(self._settings, blocked_users=self._content_policy.blocked_users)
        return added

    def unblacklist_user(self, target: UserID, *, is_privileged: bool) -> bool:
        require_privileged(is_privileged, "unblacklist")
        removed = self._content_policy.remove_blocked_user(target)
        if removed:
            self._settings = replace(self._settings, blocked_users=self._content_policy.blocked_users)
        return removed

    def blocked_users(self) -> FrozenSet[UserID]:
        return self._content_policy.blocked_users

    def timeout_user(self, target: UserID, duration_text: str, *, is_privileged: bool) -> ModerationDecision:
        """Build a TIMEOUT decision from a moderator-supplied duration.

        Raises:
            InvalidDuration: If the duration is unparsable or zero.
        """
        require_privileged(is_privileged, "timeout")
        timeout_ms = require_duration(duration_text)
        target = UserID(target)
        logger.info("[MODERATION] Manual timeout of %s for %s", target, format_duration(timeout_ms))
        return ModerationDecision(
            action=ActionType.TIMEOUT,
            target_user_id=target,
            reason=f"manual timeout ({format_duration(timeout_ms)})",
            timeout_ms=timeout_ms,
            warning_count=self._warnings.count(target),
        )

    # ------------------------------------------------------------------
    # Executor feedback and housekeeping
    # ------------------------------------------------------------------

    def record_outcome(self, outcome: ActionOutcome) -> None:
        """Log what the executor reported. Failed actions are not retried."""
        self._outcomes.append(outcome)
        decision = outcome.decision
        if outcome.success:
            logger.info(
                "[EXECUTOR] %s on %s succeeded (%s)",
                decision.action,
                decision.target_user_id,
                decision.reason,
            )
        else:
            logger.warning(
                "[EXECUTOR] %s on %s failed (%s): %s",
                decision.action,
                decision.target_user_id,
                decision.reason,
                outcome.error,
            )

    def recent_outcomes(self, limit: int | None = None) -> List[ActionOutcome]:
        """Most recent outcomes, oldest first."""
        outcomes = list(self._outcomes)
        if limit is not None:
            outcomes = outcomes[-limit:] if limit > 0 else []
        return outcomes

    def collect_garbage(self, now_ms: int | None = None) -> int:
        """Drop expired window entries and cooldowns. Returns how many entries were removed."""
        now_ms = self.clock.now_ms() if now_ms is None else now_ms
        removed = self._spam.prune(now_ms) + self._raid.prune(now_ms) + self._cooldowns.sweep(now_ms)
        if removed:
            logger.debug("[MAINTENANCE] Pruned %d expired entries", removed)
        return removed

    def stats(self) -> dict:
        """Sizes of the per-user maps, for the console status view."""
        return {
            "tracked_authors": len(self._spam.tracker),
            "warned_users": len(self._warnings.snapshot()),
            "active_cooldowns": len(self._cooldowns),
            "blocked_users": len(self._content_policy.blocked_users),
            "audit_entries": len(self._outcomes),
        }
