"""Tests for identity, event and action datatypes plus duration parsing."""

import pytest

from chatwarden.datatypes.action_datatypes import ActionType, ModerationDecision
from chatwarden.datatypes.event_datatypes import CommandInvocation, JoinEvent, MessageEvent
from chatwarden.datatypes.identity_datatypes import UserID
from chatwarden.moderation.clock import ClockSource, ManualClock, MonotonicClock
from chatwarden.moderation.errors import InvalidDuration, ValidationError
from chatwarden.util.duration import format_duration, parse_duration, require_duration


class TestUserID:
    def test_int_and_str_forms_are_equal(self):
        assert UserID(123) == UserID("123")
        assert UserID(123) == 123
        assert UserID(" alice ") == "alice"
        assert hash(UserID("alice")) == hash("alice")

    @pytest.mark.parametrize("value", ["", "   ", -1, True, 1.5, None])
    def test_invalid_values_rejected(self, value):
        with pytest.raises(ValidationError):
            UserID(value)

    def test_copy_constructor(self):
        original = UserID("alice")
        assert UserID(original) == original


class TestEvents:
    def test_message_normalizes_user_id(self):
        event = MessageEvent(user_id=42, content="hi", timestamp_ms=0)
        assert isinstance(event.user_id, UserID)
        assert event.user_id == 42

    def test_message_requires_string_content(self):
        with pytest.raises(ValidationError):
            MessageEvent(user_id="alice", content=None, timestamp_ms=0)

    def test_negative_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            JoinEvent(timestamp_ms=-5)

    def test_parse_command(self):
        event = MessageEvent(user_id="mod", content="!Warn  bob being rude", timestamp_ms=10, is_privileged=True)
        invocation = CommandInvocation.parse("!", event)

        assert invocation.command_name == "warn"
        assert invocation.args == ("bob", "being", "rude")
        assert invocation.caller_id == "mod"
        assert invocation.is_privileged is True

    @pytest.mark.parametrize("content", ["hello", "!", "!   "])
    def test_parse_returns_none_for_non_commands(self, content):
        event = MessageEvent(user_id="alice", content=content, timestamp_ms=0)
        assert CommandInvocation.parse("!", event) is None

    def test_blank_command_name_rejected(self):
        with pytest.raises(ValidationError):
            CommandInvocation(command_name=" ", args=(), caller_id="a", is_privileged=False, timestamp_ms=0)


class TestDecision:
    def test_none_is_not_actionable(self):
        assert not ModerationDecision.none("alice").is_actionable
        assert ModerationDecision(ActionType.REJECT, UserID("alice"), "cooldown").is_actionable

    def test_wire_dict(self):
        decision = ModerationDecision(ActionType.TIMEOUT, UserID(7), "spam", timeout_ms=60000)
        assert decision.to_wire_dict() == {
            "action": "timeout",
            "target_user_id": "7",
            "reason": "spam",
            "timeout_ms": 60000,
            "warning_count": None,
        }


class TestDuration:
    @pytest.mark.parametrize(
        "text, expected",
        [("60s", 60_000), ("5m", 300_000), ("1h", 3_600_000), ("0s", 0), ("5d", 0), ("5", 0), ("m5", 0), ("", 0)],
    )
    def test_parse_duration(self, text, expected):
        assert parse_duration(text) == expected

    def test_require_duration_rejects_zero(self):
        with pytest.raises(InvalidDuration):
            require_duration("0m")

    def test_require_duration_rejects_garbage(self):
        with pytest.raises(InvalidDuration) as exc_info:
            require_duration("soon")
        assert exc_info.value.text == "soon"

    @pytest.mark.parametrize(
        "ms, expected",
        [(3_600_000, "1h"), (300_000, "5m"), (90_000, "90s"), (1500, "1500ms")],
    )
    def test_format_duration(self, ms, expected):
        assert format_duration(ms) == expected


class TestClocks:
    def test_manual_clock_moves_forward_only(self):
        clock = ManualClock(100)
        assert clock.advance(50) == 150
        clock.set(200)
        assert clock.now_ms() == 200
        with pytest.raises(ValidationError):
            clock.set(10)
        with pytest.raises(ValidationError):
            clock.advance(-1)

    def test_clocks_satisfy_protocol(self):
        assert isinstance(ManualClock(), ClockSource)
        assert isinstance(MonotonicClock(), ClockSource)
