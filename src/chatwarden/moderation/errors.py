"""
Exception types raised by the moderation engine.

Every error derives from :class:`ModerationError` so the service layer and the
console can catch engine failures at one boundary while letting programming
errors propagate.
"""

from __future__ import annotations


class ModerationError(Exception):
    """Base class for all moderation engine errors."""


class ValidationError(ModerationError, ValueError):
    """Raised when malformed input (blank ids, negative timestamps, ...) reaches the engine."""


class ConfigurationError(ValidationError):
    """Raised when a policy setting is missing, unknown or out of range."""


class InvalidDuration(ValidationError):
    """Raised when a duration string is unparsable or uses an unsupported unit."""

    def __init__(self, text: str) -> None:
        super().__init__(f"Invalid duration {text!r}; expected digits followed by s, m or h (e.g. 60s, 5m, 1h).")
        self.text = text


class NoWarningsToRemove(ModerationError):
    """Raised by ``unwarn`` when the target has no warnings left."""

    def __init__(self, user_id: object) -> None:
        super().__init__(f"User {user_id} has no warnings to remove.")
        self.user_id = user_id


class NotAuthorized(ModerationError):
    """Raised when a non-privileged caller invokes a privileged operation."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Caller is not allowed to run '{operation}'.")
        self.operation = operation


class UnknownCommand(ModerationError):
    """Raised when a command name has no registered handler."""

    def __init__(self, command_name: str) -> None:
        super().__init__(f"Unknown command '{command_name}'.")
        self.command_name = command_name
