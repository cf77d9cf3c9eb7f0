"""
Type-safe wrapper for chat user identifiers.

Platforms hand out user ids as integers (snowflakes) or opaque strings. This
module normalizes both into one hashable value so the per-user maps of the
moderation engine never hold two keys for the same user.
"""

from __future__ import annotations

from typing import Union

from chatwarden.moderation.errors import ValidationError


class UserID:
    """
    Type-safe wrapper for a chat user identifier.

    The id is stored as a stripped, non-empty string. Instances compare equal
    to (and hash like) the plain string form, and compare equal to an int when
    the string form is that int's decimal representation.

    Attributes:
        _value (str): The identifier stored as a string.

    Example:
        >>> uid = UserID(123456789012345678)
        >>> str(uid)
        '123456789012345678'
        >>> UserID(" alice ") == "alice"
        True
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "UserID"]) -> None:
        """
        Initialize a UserID from a string, int, or another UserID.

        Raises:
            ValidationError: If the value is blank, negative or of an unsupported type.
        """
        if isinstance(value, UserID):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValidationError(f"Cannot create UserID from bool: {value}")
        elif isinstance(value, int):
            if value < 0:
                raise ValidationError(f"User id must not be negative: {value}")
            self._value = str(value)
        elif isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError("User id must not be empty.")
            self._value = stripped
        else:
            raise ValidationError(f"Cannot create UserID from {type(value).__name__}: {value!r}")

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"UserID({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, UserID):
            return self._value == other._value
        if isinstance(other, str):
            return self._value == other
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __lt__(self, other: "UserID") -> bool:
        return self._value < str(other)
