"""Tests for the chat command dispatcher."""

import pytest

from chatwarden.datatypes.action_datatypes import ActionType
from chatwarden.datatypes.event_datatypes import CommandInvocation
from chatwarden.moderation.errors import InvalidDuration, NotAuthorized, UnknownCommand
from chatwarden.services.command_dispatcher import CommandDispatcher, CommandResult, CommandSpec


def _invoke(name, *args, caller="mod", privileged=True):
    return CommandInvocation(
        command_name=name,
        args=args,
        caller_id=caller,
        is_privileged=privileged,
        timestamp_ms=0,
    )


@pytest.fixture()
def dispatcher(orchestrator):
    return CommandDispatcher(orchestrator)


def test_warn_reports_total(dispatcher):
    result = dispatcher.dispatch(_invoke("warn", "bob", "be", "nice"))

    assert result.ok is True
    assert result.detail == "Warned bob. Total warnings: 1."
    assert result.decisions[0].action is ActionType.WARN
    assert result.decisions[0].reason == "be nice"


def test_warn_accepts_mentions(dispatcher, orchestrator):
    dispatcher.dispatch(_invoke("warn", "<@!42>"))
    assert orchestrator.warnings_for(42) == 1


def test_warn_to_limit_times_out(dispatcher):
    for _ in range(2):
        dispatcher.dispatch(_invoke("warn", "bob"))
    result = dispatcher.dispatch(_invoke("warn", "bob"))

    assert result.detail.endswith("Warning limit reached; user timed out.")
    assert [d.action for d in result.decisions] == [ActionType.WARN, ActionType.TIMEOUT]


def test_missing_target_returns_usage(dispatcher):
    result = dispatcher.dispatch(_invoke("warn"))

    assert result.ok is False
    assert result.detail == "Please mention a user."


def test_unprivileged_warn_is_refused(dispatcher):
    with pytest.raises(NotAuthorized):
        dispatcher.dispatch(_invoke("warn", "bob", caller="alice", privileged=False))


def test_unwarn_and_warnings(dispatcher):
    dispatcher.dispatch(_invoke("warn", "bob"))
    dispatcher.dispatch(_invoke("warn", "bob"))

    assert dispatcher.dispatch(_invoke("unwarn", "bob")).detail == "Unwarned bob. Remaining warnings: 1."
    assert dispatcher.dispatch(_invoke("warnings", "bob")).detail == "bob has 1 warnings."


def test_warnings_defaults_to_caller(dispatcher):
    result = dispatcher.dispatch(_invoke("warnings", caller="alice", privileged=False))
    assert result.detail == "alice has 0 warnings."


def test_blacklist_commands(dispatcher):
    assert dispatcher.dispatch(_invoke("blacklist", "troll")).detail == "troll has been blacklisted."
    assert dispatcher.dispatch(_invoke("blacklist", "troll")).detail == "troll is already blacklisted."
    assert dispatcher.dispatch(_invoke("viewblacklist")).detail == "troll"

    removed = dispatcher.dispatch(_invoke("unblacklist", "troll"))
    assert removed.detail == "troll has been removed from the blacklist."

    missing = dispatcher.dispatch(_invoke("unblacklist", "troll"))
    assert missing.ok is False
    assert dispatcher.dispatch(_invoke("viewblacklist")).detail == "No users are blacklisted."


def test_timeout_command(dispatcher):
    result = dispatcher.dispatch(_invoke("timeout", "bob", "1h"))

    assert result.detail == "bob has been timed out for 1h."
    assert result.decisions[0].timeout_ms == 3_600_000


def test_timeout_requires_duration(dispatcher):
    result = dispatcher.dispatch(_invoke("timeout", "bob"))
    assert result.detail == "Please specify a duration (e.g., 60s, 5m, 1h)."


def test_timeout_rejects_bad_duration(dispatcher):
    with pytest.raises(InvalidDuration):
        dispatcher.dispatch(_invoke("timeout", "bob", "forever"))


def test_config_command_updates_policy(dispatcher, orchestrator):
    result = dispatcher.dispatch(_invoke("config", "spamThreshold", "9"))

    assert result.detail == "Configuration updated: spamThreshold = 9"
    assert orchestrator.settings.spam_threshold == 9


def test_config_command_requires_value(dispatcher):
    assert dispatcher.dispatch(_invoke("config", "spamThreshold")).ok is False


def test_help_alias(dispatcher):
    result = dispatcher.dispatch(_invoke("commands", privileged=False))

    assert result.command == "help"
    assert "timeout <user> <duration>" in result.detail


def test_unknown_command(dispatcher):
    with pytest.raises(UnknownCommand):
        dispatcher.dispatch(_invoke("dance"))


def test_register_custom_command(dispatcher):
    def cmd_ping(orchestrator, invocation):
        return CommandResult(command="ping", ok=True, detail="pong")

    dispatcher.register(CommandSpec("ping", cmd_ping, "Reply with pong"))

    assert "ping" in dispatcher.command_names
    assert dispatcher.dispatch(_invoke("ping")).detail == "pong"
