"""
Moderation Service.

Async front door for the platform-integration layer. Events for the same user
are serialized with a per-user ``asyncio.Lock``; the decision is returned as
soon as the orchestrator has made it, while the executor runs in a background
task whose outcome is reported back to the orchestrator for logging.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Set

from chatwarden.datatypes.action_datatypes import ActionOutcome, ActionType, ModerationDecision
from chatwarden.datatypes.event_datatypes import CommandInvocation, JoinEvent, MessageEvent
from chatwarden.datatypes.identity_datatypes import UserID
from chatwarden.moderation.errors import ModerationError
from chatwarden.moderation.orchestrator import ModerationOrchestrator
from chatwarden.services.action_executor import ActionExecutor
from chatwarden.services.command_dispatcher import CommandDispatcher, CommandResult
from chatwarden.util.logger import get_logger

logger = get_logger("moderation_service")


@dataclass(frozen=True, slots=True)
class HandledMessage:
    """Decision for a message, plus the command result when the message was a command."""

    decision: ModerationDecision
    command: CommandResult | None = None


class ModerationService:
    """
    Routes inbound events through the orchestrator and hands decisions to the executor.

    Design notes
    ------------
    * One asyncio.Lock per user, plus one for the shared join log, so two
      events for the same key never interleave. A user's lock is dropped as
      soon as no event for that user is running or waiting.
    * Executor calls (including raid escalations) are fire-and-forget
      background tasks; every result is recorded as ``ActionOutcome`` and
      failures are never retried.
    * Every ``maintenance_interval`` handled events the orchestrator prunes
      expired window entries and cooldowns.
    """

    def __init__(
        self,
        orchestrator: ModerationOrchestrator,
        executor: ActionExecutor,
        *,
        dispatcher: CommandDispatcher | None = None,
        maintenance_interval: int = 500,
    ) -> None:
        self.orchestrator = orchestrator
        self.executor = executor
        self.dispatcher = dispatcher or CommandDispatcher(orchestrator)
        self.maintenance_interval = max(1, maintenance_interval)
        self._user_locks: Dict[UserID, asyncio.Lock] = {}
        self._lock_holders: Dict[UserID, int] = {}
        self._join_lock = asyncio.Lock()
        self._pending: Set[asyncio.Task[None]] = set()
        self._handled_events = 0
        self._latest_timestamp = 0

    # ------------------------------------------------------
    # Public API
    # ------------------------------------------------------

    async def handle_message(self, event: MessageEvent) -> HandledMessage:
        """Moderate a message and, if it is an allowed command, run it."""
        command: CommandResult | None = None
        async with self._user_lock(event.user_id):
            decision = self.orchestrator.on_message(event)
            self._submit(decision)

            if not decision.is_actionable:
                invocation = CommandInvocation.parse(self.orchestrator.settings.command_prefix, event)
                if invocation is not None:
                    command = self.run_command(invocation)

        self._after_event(event.timestamp_ms)
        return HandledMessage(decision=decision, command=command)

    async def handle_join(self, event: JoinEvent) -> bool:
        """Record a join; on a raid signal, ask the executor to escalate guild-wide."""
        async with self._join_lock:
            raid = self.orchestrator.on_join(event)
            if raid:
                self._spawn(self._escalate_raid(self.orchestrator.last_join_count))
        self._after_event(event.timestamp_ms)
        return raid

    def run_command(self, invocation: CommandInvocation) -> CommandResult:
        """Dispatch a command and submit the decisions it produces.

        Engine errors (unknown command, not authorized, invalid duration, ...)
        are turned into a failed result rather than raised.
        """
        try:
            result = self.dispatcher.dispatch(invocation)
        except ModerationError as exc:
            logger.warning("[COMMANDS] '%s' from %s failed: %s", invocation.command_name, invocation.caller_id, exc)
            return CommandResult(command=invocation.command_name, ok=False, detail=str(exc))

        for decision in result.decisions:
            self._submit(decision)
        logger.info("[COMMANDS] %s ran '%s': %s", invocation.caller_id, result.command, result.detail)
        return result

    async def drain(self) -> None:
        """Wait until every submitted executor task has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def shutdown(self) -> None:
        """Let outstanding executor tasks finish."""
        await self.drain()
        logger.info("[MODERATION SERVICE] Shutdown complete.")

    @property
    def pending_actions(self) -> int:
        return len(self._pending)

    # -------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------

    @asynccontextmanager
    async def _user_lock(self, user_id: UserID) -> AsyncIterator[None]:
        """Hold the lock for ``user_id``; the entry is dropped when its last holder or waiter leaves."""
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = self._user_locks[user_id] = asyncio.Lock()
        self._lock_holders[user_id] = self._lock_holders.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_holders[user_id] - 1
            if remaining:
                self._lock_holders[user_id] = remaining
            else:
                del self._lock_holders[user_id]
                del self._user_locks[user_id]

    def _submit(self, decision: ModerationDecision) -> None:
        if decision.is_actionable:
            self._spawn(self._execute(decision))

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _execute(self, decision: ModerationDecision) -> None:
        try:
            await self.executor.execute(decision)
        except Exception as exc:
            self.orchestrator.record_outcome(ActionOutcome(decision=decision, success=False, error=str(exc) or type(exc).__name__))
            return
        self.orchestrator.record_outcome(ActionOutcome(decision=decision, success=True))

    async def _escalate_raid(self, join_count: int) -> None:
        decision = ModerationDecision(action=ActionType.RAID_ESCALATION, reason=f"raid ({join_count} joins)")
        try:
            await self.executor.escalate_raid(join_count)
        except Exception as exc:
            logger.error("[RAID] Guild-wide escalation failed: %s", exc)
            self.orchestrator.record_outcome(ActionOutcome(decision=decision, success=False, error=str(exc) or type(exc).__name__))
            return
        logger.info("[RAID] Guild-wide escalation applied after %d joins", join_count)
        self.orchestrator.record_outcome(ActionOutcome(decision=decision, success=True))

    def _after_event(self, timestamp_ms: int) -> None:
        self._handled_events += 1
        self._latest_timestamp = max(self._latest_timestamp, timestamp_ms)
        if self._handled_events % self.maintenance_interval == 0:
            self.orchestrator.collect_garbage(self._latest_timestamp)
