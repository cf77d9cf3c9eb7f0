"""
Inbound event types consumed by the moderation engine.

These are deliberately narrow: they carry only the fields the engine reads,
so the platform-integration layer can build them from whatever message or
member objects its client library exposes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from chatwarden.datatypes.identity_datatypes import UserID
from chatwarden.moderation.errors import ValidationError


def validate_timestamp(timestamp_ms: int) -> int:
    """Return ``timestamp_ms`` unchanged, raising ValidationError for negative or non-int values."""
    if isinstance(timestamp_ms, bool) or not isinstance(timestamp_ms, int):
        raise ValidationError(f"Timestamp must be an integer number of milliseconds, got {timestamp_ms!r}")
    if timestamp_ms < 0:
        raise ValidationError(f"Timestamp must not be negative: {timestamp_ms}")
    return timestamp_ms


@dataclass(frozen=True, slots=True)
class Event:
    """A timestamped occurrence recorded in a sliding window.

    Attributes:
        user_id (UserID | None): Author of the event; ``None`` for anonymous joins.
        content (str | None): Message text, ``None`` when the event has no text.
        timestamp_ms (int): Milliseconds on the engine clock.
    """

    user_id: UserID | None
    content: str | None
    timestamp_ms: int

    def __post_init__(self) -> None:
        validate_timestamp(self.timestamp_ms)


@dataclass(frozen=True, slots=True)
class MessageEvent:
    """A chat message as seen by the moderation engine.

    Attributes:
        user_id (UserID): Author of the message.
        content (str): Raw message text. May be empty for attachment-only messages.
        timestamp_ms (int): Milliseconds on the engine clock.
        is_privileged (bool): Whether the author passes the caller's moderator check.
    """

    user_id: UserID
    content: str
    timestamp_ms: int
    is_privileged: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "user_id", UserID(self.user_id))
        if not isinstance(self.content, str):
            raise ValidationError(f"Message content must be a string, got {type(self.content).__name__}")
        validate_timestamp(self.timestamp_ms)


@dataclass(frozen=True, slots=True)
class JoinEvent:
    """A member joining the community."""

    timestamp_ms: int
    user_id: UserID | None = None

    def __post_init__(self) -> None:
        if self.user_id is not None:
            object.__setattr__(self, "user_id", UserID(self.user_id))
        validate_timestamp(self.timestamp_ms)


@dataclass(frozen=True, slots=True)
class CommandInvocation:
    """A prefixed command typed by a user.

    Attributes:
        command_name (str): Lower-cased command name without the prefix.
        args (Tuple[str, ...]): Whitespace-separated arguments after the name.
        caller_id (UserID): Who invoked the command.
        is_privileged (bool): Whether the caller passes the moderator check.
        timestamp_ms (int): Milliseconds on the engine clock.
    """

    command_name: str
    args: Tuple[str, ...]
    caller_id: UserID
    is_privileged: bool
    timestamp_ms: int
    raw_content: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.command_name or not self.command_name.strip():
            raise ValidationError("Command name must not be empty.")
        object.__setattr__(self, "caller_id", UserID(self.caller_id))
        object.__setattr__(self, "args", tuple(self.args))
        validate_timestamp(self.timestamp_ms)

    @classmethod
    def parse(cls, prefix: str, event: MessageEvent) -> "CommandInvocation | None":
        """Build an invocation from a message, or return None if it is not a command.

        The text after ``prefix`` is stripped and split on runs of whitespace;
        the first token, lower-cased, is the command name.
        """
        if not event.content.startswith(prefix):
            return None
        tokens = event.content[len(prefix):].strip().split()
        if not tokens:
            return None
        return cls(
            command_name=tokens[0].lower(),
            args=tuple(tokens[1:]),
            caller_id=event.user_id,
            is_privileged=event.is_privileged,
            timestamp_ms=event.timestamp_ms,
            raw_content=event.content,
        )
