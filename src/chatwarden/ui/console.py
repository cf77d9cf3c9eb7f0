"""Interactive console for driving the moderation engine by hand."""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import PromptSession

from chatwarden.datatypes.event_datatypes import JoinEvent, MessageEvent
from chatwarden.moderation.errors import ModerationError
from chatwarden.services.moderation_service import HandledMessage, ModerationService
from chatwarden.util.duration import format_duration
from chatwarden.util.logger import get_logger

# Box drawing helpers for aligned console output
BOX_WIDTH = 60

PRIVILEGED_FLAG = "--mod"

logger = get_logger("console")


def console_print(message: str, style: str = "") -> None:
    """
    Print text using prompt_toolkit without breaking the active prompt.

    Args:
        message (str): The text to print to the console.
        style (str): Optional prompt_toolkit style applied to the whole line.
    """
    formatted: FormattedText | str
    if style:
        formatted = FormattedText([(style, message)])
    else:
        formatted = message
    print_formatted_text(formatted)


def print_boxed_title(title: str, color: str = "") -> None:
    """
    Print ``title`` centered inside a ╔═╗ box of width BOX_WIDTH.
    """
    inner_width = BOX_WIDTH - 2
    pad_left = (inner_width - len(title)) // 2
    pad_right = inner_width - len(title) - pad_left
    for line in (
        f"╔{'═' * inner_width}╗",
        f"║{' ' * pad_left}{title}{' ' * pad_right}║",
        f"╚{'═' * inner_width}╝",
    ):
        console_print(line, color)


# Type alias for console handler functions
CommandHandler = Callable[["ConsoleControl", list[str]], Awaitable[None]]


@dataclass
class Command:
    """
    Definition of a console command with handler and metadata.

    Attributes:
        name (str): Primary name of the command.
        handler (CommandHandler): Async function to execute when the command is invoked.
        aliases (list[str]): Alternative names that can trigger this command.
        description (str): Human-readable description shown in help text.
        usage (str): Optional usage string showing command syntax.
    """
    name: str
    handler: CommandHandler
    aliases: list[str]
    description: str
    usage: str = ""

    def matches(self, input_cmd: str) -> bool:
        """Check if input matches this command or any alias."""
        return input_cmd == self.name or input_cmd in self.aliases


class ConsoleControl:
    """
    State shared by the console commands: the moderation service and the shutdown flag.

    Attributes:
        service (ModerationService): Service the console feeds events into.
        shutdown_event (asyncio.Event): Set when the console should stop.
    """

    def __init__(self, service: ModerationService) -> None:
        self.service = service
        self.shutdown_event = asyncio.Event()

    def now_ms(self) -> int:
        return self.service.orchestrator.clock.now_ms()

    def request_shutdown(self) -> None:
        self.shutdown_event.set()

    def is_shutdown_requested(self) -> bool:
        return self.shutdown_event.is_set()


def print_handled(handled: HandledMessage) -> None:
    decision = handled.decision
    if decision.is_actionable:
        extra = f" for {format_duration(decision.timeout_ms)}" if decision.timeout_ms else ""
        console_print(f"  → {decision.action}{extra} ({decision.reason})", "ansiyellow")
    else:
        console_print("  → no action", "ansigreen")
    if handled.command is not None:
        style = "ansicyan" if handled.command.ok else "ansibrightred"
        for line in handled.command.detail.splitlines():
            console_print(f"    {line}", style)


# ==================== Command Handlers ====================

async def cmd_help(control: ConsoleControl, args: list[str]) -> None:
    """Print every registered console command with its aliases and usage."""
    print_boxed_title("Console Commands Reference", "ansigreen")
    for cmd in COMMANDS:
        aliases_str = f" (aliases: {', '.join(cmd.aliases)})" if cmd.aliases else ""
        console_print(f"\n  {cmd.name}{aliases_str}", "ansicyan")
        console_print(f"    {cmd.description}")
        if cmd.usage:
            console_print(f"    Usage: {cmd.usage}", "ansibrightblack")
    console_print("")


async def cmd_message(control: ConsoleControl, args: list[str]) -> None:
    """
    Feed one chat message through the moderation service.

    The first argument is the author id; ``--mod`` right after it marks the
    author as privileged. Everything else is the message text, so chat
    commands can be tried as ``message 42 --mod !warn 7``.
    """
    if not args:
        console_print(f"Usage: message <user> [{PRIVILEGED_FLAG}] <text>", "ansibrightred")
        return
    user, rest = args[0], args[1:]
    privileged = bool(rest) and rest[0] == PRIVILEGED_FLAG
    if privileged:
        rest = rest[1:]
    event = MessageEvent(user_id=user, content=" ".join(rest), timestamp_ms=control.now_ms(), is_privileged=privileged)
    print_handled(await control.service.handle_message(event))


async def cmd_join(control: ConsoleControl, args: list[str]) -> None:
    """Simulate one or more member joins and report whether a raid was signalled."""
    count = int(args[0]) if args else 1
    for index in range(count):
        raid = await control.service.handle_join(JoinEvent(timestamp_ms=control.now_ms()))
        if raid:
            console_print(f"  join {index + 1}: RAID detected", "ansibrightred")
    console_print(f"  {count} join(s) recorded.", "ansibrightblack")


async def cmd_warnings(control: ConsoleControl, args: list[str]) -> None:
    """List warning counts of every user who has been warned."""
    counts = control.service.orchestrator.warning_counts()
    if not counts:
        console_print("No warnings recorded.", "ansiyellow")
        return
    print_boxed_title(f"Warnings ({len(counts)})", "ansiblue")
    for user_id, count in sorted(counts.items()):
        console_print(f"  • {user_id}: {count}")
    console_print("")


async def cmd_blacklist(control: ConsoleControl, args: list[str]) -> None:
    blocked = sorted(control.service.orchestrator.blocked_users())
    if not blocked:
        console_print("No users are blacklisted.", "ansiyellow")
        return
    for user_id in blocked:
        console_print(f"  • {user_id}")


async def cmd_outcomes(control: ConsoleControl, args: list[str]) -> None:
    """Show the most recent executor outcomes (default 10)."""
    limit = int(args[0]) if args else 10
    outcomes = control.service.orchestrator.recent_outcomes(limit)
    if not outcomes:
        console_print("No actions executed yet.", "ansiyellow")
        return
    print_boxed_title(f"Recent Actions ({len(outcomes)})", "ansimagenta")
    for outcome in outcomes:
        decision = outcome.decision
        status = "ok" if outcome.success else f"FAILED: {outcome.error}"
        target = decision.target_user_id if decision.target_user_id is not None else "guild"
        console_print(f"  • {decision.action} {target} ({decision.reason}) - {status}")
    console_print("")


async def cmd_status(control: ConsoleControl, args: list[str]) -> None:
    """Display the active policy and the size of the engine's state."""
    orchestrator = control.service.orchestrator
    print_boxed_title("Moderation Status", "ansimagenta")
    for key, value in orchestrator.settings.as_dict().items():
        console_print(f"  {key:<26} {value}")
    console_print("")
    for key, value in orchestrator.stats().items():
        console_print(f"  {key:<26} {value}", "ansibrightblack")
    console_print(f"  {'pending_actions':<26} {control.service.pending_actions}", "ansibrightblack")
    console_print("")


async def cmd_simulate(control: ConsoleControl, args: list[str]) -> None:
    """
    Replay a scripted scenario: a spam burst, a blocked term, and manual warnings.

    Uses throwaway user ids so it does not disturb real state much; the
    executor still receives every resulting decision.
    """
    service = control.service
    settings = service.orchestrator.settings
    moderator, spammer, offender = "sim-moderator", "sim-spammer", "sim-offender"

    console_print("Starting moderation simulation…", "ansicyan")

    console_print(f"  Spam burst ({settings.spam_threshold + 1} identical messages):")
    for _ in range(settings.spam_threshold + 1):
        handled = await service.handle_message(MessageEvent(spammer, "Spam message", control.now_ms()))
    print_handled(handled)

    if settings.blocked_terms:
        term = settings.blocked_terms[0]
        console_print(f"  Blocked term '{term}':")
        print_handled(await service.handle_message(MessageEvent(offender, f"This message contains {term}", control.now_ms())))

    prefix = settings.command_prefix
    console_print("  Manual warnings:")
    for step in range(1, settings.warning_limit + 1):
        print_handled(
            await service.handle_message(
                MessageEvent(moderator, f"{prefix}warn {offender} simulation step {step}", control.now_ms(), is_privileged=True)
            )
        )

    await service.drain()
    console_print("Moderation simulation completed.", "ansicyan")


async def cmd_clear(control: ConsoleControl, args: list[str]) -> None:
    os.system('cls' if os.name == 'nt' else 'clear')
    console_print("Console cleared.", "ansibrightcyan")


async def cmd_shutdown(control: ConsoleControl, args: list[str]) -> None:
    console_print("Shutdown requested.", "ansiyellow")
    control.request_shutdown()


# ==================== Command Registry ====================

COMMANDS: list[Command] = [
    Command(
        name="help",
        handler=cmd_help,
        aliases=["h", "?"],
        description="Show this help message with all available commands",
    ),
    Command(
        name="message",
        handler=cmd_message,
        aliases=["msg", "m"],
        description="Send a chat message through the moderation engine",
        usage=f"message <user> [{PRIVILEGED_FLAG}] <text>",
    ),
    Command(
        name="join",
        handler=cmd_join,
        aliases=["j"],
        description="Simulate member joins",
        usage="join [count]",
    ),
    Command(
        name="warnings",
        handler=cmd_warnings,
        aliases=["warns"],
        description="List warning counts",
    ),
    Command(
        name="blacklist",
        handler=cmd_blacklist,
        aliases=["bl"],
        description="List blacklisted users",
    ),
    Command(
        name="outcomes",
        handler=cmd_outcomes,
        aliases=["log"],
        description="Show recent executor outcomes",
        usage="outcomes [count]",
    ),
    Command(
        name="status",
        handler=cmd_status,
        aliases=["stat", "info"],
        description="Display the active policy and engine state sizes",
    ),
    Command(
        name="simulate",
        handler=cmd_simulate,
        aliases=["test"],
        description="Run the scripted spam / blocked term / warning scenario",
    ),
    Command(
        name="clear",
        handler=cmd_clear,
        aliases=["cls"],
        description="Clear the console screen",
    ),
    Command(
        name="shutdown",
        handler=cmd_shutdown,
        aliases=["stop", "quit", "exit"],
        description="Gracefully shut down",
    ),
]


# ==================== Command Dispatcher ====================

async def handle_console_command(command: str, control: ConsoleControl) -> None:
    """
    Parse and execute one console line.

    Engine errors are shown to the operator; anything else is logged with its
    traceback.
    """
    if not command.strip():
        return

    parts = command.strip().split()
    cmd_name = parts[0].lower()
    args = parts[1:]

    for cmd in COMMANDS:
        if cmd.matches(cmd_name):
            try:
                await cmd.handler(control, args)
            except (ModerationError, ValueError) as exc:
                console_print(f"Error: {exc}", "ansibrightred")
            except Exception as exc:
                logger.exception("Error executing console command '%s': %s", cmd_name, exc)
                console_print(f"Error executing command: {exc}", "ansibrightred")
            return

    console_print(f"Unknown command '{cmd_name}'. Type 'help' for available commands.", "ansibrightred")


async def run_console(control: ConsoleControl, prompt: str = "> ") -> None:
    """
    Read and dispatch console lines until shutdown is requested.
    """
    session = PromptSession(prompt)

    print_boxed_title("chatwarden Interactive Console", "ansicyan")
    console_print("Type 'help' for available commands or 'exit' to quit.\n", "ansibrightblack")

    with patch_stdout():
        while not control.is_shutdown_requested():
            try:
                line = await session.prompt_async()
                if line.strip():
                    await handle_console_command(line, control)
            except (EOFError, KeyboardInterrupt):
                console_print("\nShutdown requested by user.", "ansibrightyellow")
                control.request_shutdown()
                break


@asynccontextmanager
async def console_session(control: ConsoleControl, prompt: str = "> ") -> AsyncIterator[ConsoleControl]:
    """
    Run the console in a background task for the lifetime of the context.

    Example:
        async with console_session(control):
            await control.shutdown_event.wait()
    """
    console_task = asyncio.create_task(run_console(control, prompt))
    try:
        yield control
    finally:
        control.request_shutdown()
        console_task.cancel()
        try:
            await console_task
        except asyncio.CancelledError:
            pass
