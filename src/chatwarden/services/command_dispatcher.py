"""
Manual moderation commands.

Maps a parsed ``CommandInvocation`` to the matching orchestrator operation.
Missing arguments are answered with a usage result; authorization, unknown
commands and invalid values surface as ``ModerationError`` subclasses for
the caller to report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple

from chatwarden.datatypes.action_datatypes import ModerationDecision
from chatwarden.datatypes.event_datatypes import CommandInvocation
from chatwarden.datatypes.identity_datatypes import UserID
from chatwarden.moderation.errors import UnknownCommand
from chatwarden.moderation.orchestrator import ModerationOrchestrator
from chatwarden.util.logger import get_logger

logger = get_logger("command_dispatcher")


@dataclass(frozen=True, slots=True)
class CommandResult:
    """What a command did.

    Attributes:
        command: Name of the command that ran.
        ok: False when the command was refused or lacked arguments.
        detail: Plain-text summary for the caller to relay.
        decisions: Platform actions the executor should carry out.
    """

    command: str
    ok: bool
    detail: str
    decisions: Tuple[ModerationDecision, ...] = field(default_factory=tuple)


CommandHandler = Callable[[ModerationOrchestrator, CommandInvocation], CommandResult]


@dataclass
class CommandSpec:
    """Registry entry for one chat command."""

    name: str
    handler: CommandHandler
    description: str
    usage: str = ""
    aliases: List[str] = field(default_factory=list)


def _target(invocation: CommandInvocation, index: int = 0) -> UserID | None:
    """Return the user id argument at ``index``, accepting ``<@123>`` style mentions."""
    if len(invocation.args) <= index:
        return None
    raw = invocation.args[index].strip()
    if raw.startswith("<@") and raw.endswith(">"):
        raw = raw[2:-1].lstrip("!")
    return UserID(raw) if raw else None


def _usage(invocation: CommandInvocation, message: str) -> CommandResult:
    return CommandResult(command=invocation.command_name, ok=False, detail=message)


# ==================== Command Handlers ====================

def cmd_warn(orchestrator: ModerationOrchestrator, invocation: CommandInvocation) -> CommandResult:
    target = _target(invocation)
    if target is None:
        return _usage(invocation, "Please mention a user.")
    reason = " ".join(invocation.args[1:]) or "manual warning"
    decisions = orchestrator.warn_user(target, is_privileged=invocation.is_privileged, reason=reason)
    detail = f"Warned {target}. Total warnings: {decisions[0].warning_count}."
    if len(decisions) > 1:
        detail += " Warning limit reached; user timed out."
    return CommandResult(command="warn", ok=True, detail=detail, decisions=decisions)


def cmd_unwarn(orchestrator: ModerationOrchestrator, invocation: CommandInvocation) -> CommandResult:
    target = _target(invocation)
    if target is None:
        return _usage(invocation, "Please mention a user.")
    remaining = orchestrator.unwarn_user(target, is_privileged=invocation.is_privileged)
    return CommandResult(command="unwarn", ok=True, detail=f"Unwarned {target}. Remaining warnings: {remaining}.")


def cmd_warnings(orchestrator: ModerationOrchestrator, invocation: CommandInvocation) -> CommandResult:
    target = _target(invocation) or invocation.caller_id
    count = orchestrator.warnings_for(target)
    return CommandResult(command="warnings", ok=True, detail=f"{target} has {count} warnings.")


def cmd_blacklist(orchestrator: ModerationOrchestrator, invocation: CommandInvocation) -> CommandResult:
    target = _target(invocation)
    if target is None:
        return _usage(invocation, "Please mention a user.")
    if orchestrator.blacklist_user(target, is_privileged=invocation.is_privileged):
        return CommandResult(command="blacklist", ok=True, detail=f"{target} has been blacklisted.")
    return CommandResult(command="blacklist", ok=True, detail=f"{target} is already blacklisted.")


def cmd_unblacklist(orchestrator: ModerationOrchestrator, invocation: CommandInvocation) -> CommandResult:
    target = _target(invocation)
    if target is None:
        return _usage(invocation, "Please mention a user.")
    if orchestrator.unblacklist_user(target, is_privileged=invocation.is_privileged):
        return CommandResult(command="unblacklist", ok=True, detail=f"{target} has been removed from the blacklist.")
    return CommandResult(command="unblacklist", ok=False, detail=f"{target} is not in the blacklist.")


def cmd_viewblacklist(orchestrator: ModerationOrchestrator, invocation: CommandInvocation) -> CommandResult:
    blocked = sorted(orchestrator.blocked_users())
    detail = "\n".join(str(uid) for uid in blocked) if blocked else "No users are blacklisted."
    return CommandResult(command="viewblacklist", ok=True, detail=detail)


def cmd_timeout(orchestrator: ModerationOrchestrator, invocation: CommandInvocation) -> CommandResult:
    target = _target(invocation)
    if target is None:
        return _usage(invocation, "Please mention a user.")
    if len(invocation.args) < 2:
        return _usage(invocation, "Please specify a duration (e.g., 60s, 5m, 1h).")
    decision = orchestrator.timeout_user(target, invocation.args[1], is_privileged=invocation.is_privileged)
    return CommandResult(
        command="timeout",
        ok=True,
        detail=f"{target} has been timed out for {invocation.args[1]}.",
        decisions=(decision,),
    )


def cmd_config(orchestrator: ModerationOrchestrator, invocation: CommandInvocation) -> CommandResult:
    if len(invocation.args) < 2:
        return _usage(invocation, "Please provide a key and value to update.")
    key, value = invocation.args[0], " ".join(invocation.args[1:])
    orchestrator.update_setting(key, value, is_privileged=invocation.is_privileged)
    return CommandResult(command="config", ok=True, detail=f"Configuration updated: {key} = {value}")


def cmd_help(orchestrator: ModerationOrchestrator, invocation: CommandInvocation) -> CommandResult:
    lines = [f"{spec.name} {spec.usage}".rstrip() + f" - {spec.description}" for spec in COMMANDS]
    return CommandResult(command="help", ok=True, detail="\n".join(lines))


# ==================== Command Registry ====================

COMMANDS: List[CommandSpec] = [
    CommandSpec("warn", cmd_warn, "Warn a user (moderators only)", "<user> [reason]"),
    CommandSpec("unwarn", cmd_unwarn, "Remove one warning (moderators only)", "<user>"),
    CommandSpec("warnings", cmd_warnings, "Show a user's warning count", "[user]"),
    CommandSpec("blacklist", cmd_blacklist, "Block every message from a user (moderators only)", "<user>"),
    CommandSpec("unblacklist", cmd_unblacklist, "Lift a blacklist entry (moderators only)", "<user>"),
    CommandSpec("viewblacklist", cmd_viewblacklist, "List blacklisted users"),
    CommandSpec("timeout", cmd_timeout, "Time a user out (moderators only)", "<user> <duration>"),
    CommandSpec("config", cmd_config, "Change a moderation setting (moderators only)", "<key> <value>"),
    CommandSpec("help", cmd_help, "List available commands", aliases=["commands"]),
]


class CommandDispatcher:
    """Looks up and runs chat commands against one orchestrator."""

    def __init__(self, orchestrator: ModerationOrchestrator, commands: List[CommandSpec] | None = None) -> None:
        self._orchestrator = orchestrator
        self._commands: Dict[str, CommandSpec] = {}
        for spec in commands if commands is not None else COMMANDS:
            self.register(spec)

    def register(self, spec: CommandSpec) -> None:
        for name in (spec.name, *spec.aliases):
            self._commands[name] = spec

    @property
    def command_names(self) -> List[str]:
        return sorted({spec.name for spec in self._commands.values()})

    def dispatch(self, invocation: CommandInvocation) -> CommandResult:
        """Run the command named by ``invocation``.

        Raises:
            UnknownCommand: If no command matches.
            ModerationError: Whatever the underlying operation raises.
        """
        spec = self._commands.get(invocation.command_name)
        if spec is None:
            raise UnknownCommand(invocation.command_name)
        logger.debug("[COMMANDS] %s invoked '%s' with %s", invocation.caller_id, spec.name, list(invocation.args))
        return spec.handler(self._orchestrator, invocation)
