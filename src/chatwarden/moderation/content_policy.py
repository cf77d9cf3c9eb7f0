from __future__ import annotations

from typing import FrozenSet, Iterable, Set, Tuple

from chatwarden.datatypes.identity_datatypes import UserID
from chatwarden.util.logger import get_logger

logger = get_logger("content_policy")


class ContentPolicy:
    """Blocked-term matching and the user blocklist.

    Terms are matched case-insensitively as substrings, in the order they were
    configured; the first hit is reported with its configured spelling.
    """

    def __init__(self, blocked_terms: Iterable[str] = (), blocked_users: Iterable[UserID] = ()) -> None:
        self._terms: Tuple[Tuple[str, str], ...] = ()
        self.set_blocked_terms(blocked_terms)
        self._blocked_users: Set[UserID] = {UserID(uid) for uid in blocked_users}

    @property
    def blocked_terms(self) -> Tuple[str, ...]:
        return tuple(term for term, _ in self._terms)

    @property
    def blocked_users(self) -> FrozenSet[UserID]:
        return frozenset(self._blocked_users)

    def set_blocked_terms(self, terms: Iterable[str]) -> None:
        self._terms = tuple((term, term.lower()) for term in terms)

    def violating_term(self, content: str | None) -> str | None:
        """Return the first blocked term contained in ``content``, or None."""
        if not content:
            return None
        lowered = content.lower()
        for term, lowered_term in self._terms:
            if lowered_term in lowered:
                return term
        return None

    def is_blocked_user(self, user_id: UserID) -> bool:
        return UserID(user_id) in self._blocked_users

    def add_blocked_user(self, user_id: UserID) -> bool:
        """Blocklist ``user_id``. Returns False if the user was already blocked."""
        user_id = UserID(user_id)
        if user_id in self._blocked_users:
            return False
        self._blocked_users.add(user_id)
        logger.info("[CONTENT POLICY] Added %s to the blocklist", user_id)
        return True

    def remove_blocked_user(self, user_id: UserID) -> bool:
        """Remove ``user_id`` from the blocklist. Returns False if the user was not blocked."""
        user_id = UserID(user_id)
        if user_id not in self._blocked_users:
            return False
        self._blocked_users.discard(user_id)
        logger.info("[CONTENT POLICY] Removed %s from the blocklist", user_id)
        return True
