from __future__ import annotations

from typing import Dict

from chatwarden.datatypes.event_datatypes import validate_timestamp
from chatwarden.datatypes.identity_datatypes import UserID
from chatwarden.moderation.errors import ValidationError


class CooldownGate:
    """Per-user minimum interval between accepted command invocations.

    Expiry is checked lazily on the next attempt by the same user; expired
    entries are removed when seen or by :meth:`sweep`.
    """

    def __init__(self) -> None:
        self._expiries: Dict[UserID, int] = {}

    def try_acquire(self, user_id: UserID, now_ms: int, cooldown_ms: int, is_privileged: bool) -> bool:
        """Return True if ``user_id`` may run a command now and start their cooldown.

        Privileged callers always pass and leave no state behind.
        """
        if is_privileged:
            return True

        user_id = UserID(user_id)
        validate_timestamp(now_ms)
        if isinstance(cooldown_ms, bool) or not isinstance(cooldown_ms, int) or cooldown_ms < 0:
            raise ValidationError(f"Cooldown must be a non-negative number of milliseconds, got {cooldown_ms!r}")

        expiry = self._expiries.get(user_id)
        if expiry is not None and now_ms < expiry:
            return False

        if cooldown_ms == 0:
            self._expiries.pop(user_id, None)
        else:
            self._expiries[user_id] = now_ms + cooldown_ms
        return True

    def remaining_ms(self, user_id: UserID, now_ms: int) -> int:
        expiry = self._expiries.get(UserID(user_id))
        if expiry is None:
            return 0
        return max(0, expiry - now_ms)

    def sweep(self, now_ms: int) -> int:
        """Drop every expired entry. Returns how many were removed."""
        validate_timestamp(now_ms)
        expired = [user_id for user_id, expiry in self._expiries.items() if expiry <= now_ms]
        for user_id in expired:
            del self._expiries[user_id]
        return len(expired)

    def __len__(self) -> int:
        return len(self._expiries)
