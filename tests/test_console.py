"""Tests for console.py module."""
import pytest
from types import SimpleNamespace
from unittest.mock import patch

from chatwarden.datatypes.action_datatypes import ActionType
from chatwarden.services.action_executor import LoggingActionExecutor
from chatwarden.services.moderation_service import ModerationService
from chatwarden.ui import console


@pytest.fixture()
def control(orchestrator):
    service = ModerationService(orchestrator, LoggingActionExecutor())
    return console.ConsoleControl(service)


def _printed(mock_print) -> str:
    return "\n".join(str(call.args[0]) for call in mock_print.call_args_list)


def test_console_print_without_style():
    with patch("chatwarden.ui.console.print_formatted_text") as mock_print:
        console.console_print("Test message")
        mock_print.assert_called_once_with("Test message")


def test_console_print_with_style():
    with patch("chatwarden.ui.console.print_formatted_text") as mock_print:
        console.console_print("Test message", "ansigreen")
        assert mock_print.call_count == 1


def test_console_control_request_shutdown(control):
    assert not control.is_shutdown_requested()
    control.request_shutdown()
    assert control.is_shutdown_requested()


def test_command_aliases():
    shutdown = next(cmd for cmd in console.COMMANDS if cmd.name == "shutdown")
    assert shutdown.matches("exit")
    assert shutdown.matches("quit")
    assert not shutdown.matches("restart")


@pytest.mark.asyncio
async def test_handle_console_command_empty(control):
    with patch("chatwarden.ui.console.console_print") as mock_print:
        await console.handle_console_command("", control)
        await console.handle_console_command("   ", control)
    mock_print.assert_not_called()


@pytest.mark.asyncio
async def test_handle_console_command_unknown(control):
    with patch("chatwarden.ui.console.console_print") as mock_print:
        await console.handle_console_command("dance", control)
    assert "Unknown command 'dance'" in _printed(mock_print)


@pytest.mark.asyncio
async def test_handle_console_command_quit(control):
    with patch("chatwarden.ui.console.console_print"):
        await console.handle_console_command("quit", control)
    assert control.is_shutdown_requested()


@pytest.mark.asyncio
async def test_message_command_reports_decision(control):
    with patch("chatwarden.ui.console.console_print") as mock_print:
        await console.handle_console_command("message alice you badWord1", control)
    assert "delete (blocked term: badWord1)" in _printed(mock_print)


@pytest.mark.asyncio
async def test_message_command_privileged_flag(control):
    with patch("chatwarden.ui.console.console_print") as mock_print:
        await console.handle_console_command("msg mod --mod !warn bob", control)
    await control.service.drain()

    assert control.service.orchestrator.warnings_for("bob") == 1
    assert "Warned bob. Total warnings: 1." in _printed(mock_print)


@pytest.mark.asyncio
async def test_message_command_without_args_prints_usage(control):
    with patch("chatwarden.ui.console.console_print") as mock_print:
        await console.handle_console_command("message", control)
    assert "Usage: message" in _printed(mock_print)


@pytest.mark.asyncio
async def test_join_command_reports_raid(control):
    with patch("chatwarden.ui.console.console_print") as mock_print:
        await console.handle_console_command("join 10", control)
    await control.service.drain()

    assert "RAID detected" in _printed(mock_print)
    assert control.service.executor.raid_escalations == [10]


@pytest.mark.asyncio
async def test_bad_argument_is_reported(control):
    with patch("chatwarden.ui.console.console_print") as mock_print:
        await console.handle_console_command("join lots", control)
    assert _printed(mock_print).startswith("Error:")


@pytest.mark.asyncio
async def test_simulate_runs_scenario(control):
    with patch("chatwarden.ui.console.console_print"):
        await console.handle_console_command("simulate", control)

    orchestrator = control.service.orchestrator
    actions = [decision.action for decision in control.service.executor.executed]
    assert ActionType.DELETE_AND_TIMEOUT in actions
    assert ActionType.DELETE in actions
    assert actions.count(ActionType.WARN) == orchestrator.settings.warning_limit
    assert actions[-1] is ActionType.TIMEOUT
    assert orchestrator.warnings_for("sim-offender") == orchestrator.settings.warning_limit


@pytest.mark.asyncio
async def test_status_and_outcomes(control):
    with patch("chatwarden.ui.console.console_print") as mock_print:
        await console.handle_console_command("outcomes", control)
        await console.handle_console_command("message alice badWord2", control)
        await control.service.drain()
        await console.handle_console_command("log 5", control)
        await console.handle_console_command("status", control)

    printed = _printed(mock_print)
    assert "No actions executed yet." in printed
    assert "delete alice (blocked term: badWord2) - ok" in printed
    assert "spam_threshold" in printed


@pytest.mark.asyncio
async def test_run_console_with_eof(control):
    async def fake_prompt():
        raise EOFError()

    fake_session = SimpleNamespace(prompt_async=fake_prompt)

    with patch("chatwarden.ui.console.PromptSession", return_value=fake_session):
        with patch("chatwarden.ui.console.console_print"):
            await console.run_console(control)

    assert control.is_shutdown_requested()
