from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Tuple

from chatwarden.datatypes.identity_datatypes import UserID
from chatwarden.moderation.errors import ConfigurationError, ValidationError

# Keys accepted from older config files and from the ``config`` command
SETTING_ALIASES: Dict[str, str] = {
    "spamThreshold": "spam_threshold",
    "spamTimeFrame": "spam_time_frame_ms",
    "spamTimeFrameMs": "spam_time_frame_ms",
    "raidThreshold": "raid_threshold",
    "raidTimeFrame": "raid_time_frame_ms",
    "raidTimeFrameMs": "raid_time_frame_ms",
    "warningLimit": "warning_limit",
    "commandCooldown": "command_cooldown_ms",
    "commandCooldownMs": "command_cooldown_ms",
    "spamTimeout": "spam_timeout_ms",
    "inappropriateWords": "blocked_terms",
    "blockedTerms": "blocked_terms",
    "blacklist": "blocked_users",
    "blockedUsers": "blocked_users",
    "prefix": "command_prefix",
}

# Lower bound for every integer setting
INT_MINIMUMS: Dict[str, int] = {
    "spam_threshold": 1,
    "spam_time_frame_ms": 1,
    "raid_threshold": 1,
    "raid_time_frame_ms": 1,
    "warning_limit": 1,
    "command_cooldown_ms": 0,
    "spam_timeout_ms": 1,
    "content_timeout_ms": 1,
    "warning_limit_timeout_ms": 1,
    "audit_log_size": 1,
}


@dataclass(frozen=True, slots=True)
class PolicySettings:
    """Immutable snapshot of the moderation policy.

    A new snapshot is produced for every change; components read the snapshot
    that was current when an event arrived.
    """

    spam_threshold: int = 5
    spam_time_frame_ms: int = 5000
    raid_threshold: int = 10
    raid_time_frame_ms: int = 10000
    warning_limit: int = 3
    command_cooldown_ms: int = 5000
    blocked_terms: Tuple[str, ...] = ()
    blocked_users: FrozenSet[UserID] = field(default_factory=frozenset)
    command_prefix: str = "!"
    spam_timeout_ms: int = 60000
    content_timeout_ms: int = 300000
    warning_limit_timeout_ms: int = 60000
    audit_log_size: int = 100

    def __post_init__(self) -> None:
        for name, minimum in INT_MINIMUMS.items():
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"Setting '{name}' must be an integer, got {value!r}")
            if value < minimum:
                raise ConfigurationError(f"Setting '{name}' must be >= {minimum}, got {value}")

        if not isinstance(self.command_prefix, str) or not self.command_prefix.strip():
            raise ConfigurationError("Setting 'command_prefix' must be a non-empty string")

        terms = tuple(self.blocked_terms)
        if any(not isinstance(term, str) or not term.strip() for term in terms):
            raise ConfigurationError("Setting 'blocked_terms' must only contain non-empty strings")
        object.__setattr__(self, "blocked_terms", terms)

        try:
            object.__setattr__(self, "blocked_users", frozenset(UserID(uid) for uid in self.blocked_users))
        except ValidationError as exc:
            raise ConfigurationError(f"Setting 'blocked_users' contains an invalid id: {exc}") from exc

    @classmethod
    def setting_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def canonical_key(cls, key: str) -> str:
        """Resolve an alias (``spamThreshold``) to its field name, raising for unknown keys."""
        name = SETTING_ALIASES.get(key, key)
        if name not in cls.setting_names():
            raise ConfigurationError(f"Unknown setting '{key}'")
        return name

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "PolicySettings":
        """Build settings from a config mapping, ignoring ``None`` values.

        Raises:
            ConfigurationError: On unknown keys or out-of-range values.
        """
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Moderation settings must be a mapping, got {type(data).__name__}")

        values: Dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            name = cls.canonical_key(str(key))
            if name in ("blocked_terms", "blocked_users"):
                value = _as_list(name, value)
            values[name] = value
        return cls(**values)

    def with_update(self, key: str, raw_value: str) -> "PolicySettings":
        """Return a copy with one setting changed from its textual form.

        Integer settings accept decimal strings, ``blocked_terms`` takes a
        comma-separated list. ``blocked_users`` is only changed through the
        blacklist operations, never through here.
        """
        name = self.canonical_key(key)
        if name == "blocked_users":
            raise ConfigurationError("Use the blacklist/unblacklist operations to change 'blocked_users'")

        value: Any
        if name in INT_MINIMUMS:
            try:
                value = int(str(raw_value).strip())
            except ValueError as exc:
                raise ConfigurationError(f"Setting '{name}' expects an integer, got {raw_value!r}") from exc
        elif name == "blocked_terms":
            value = tuple(term.strip() for term in str(raw_value).split(",") if term.strip())
        else:
            value = str(raw_value).strip()
        return replace(self, **{name: value})

    def as_dict(self) -> Dict[str, Any]:
        """Return a YAML/JSON friendly view of the settings."""
        data: Dict[str, Any] = {name: getattr(self, name) for name in self.setting_names()}
        data["blocked_terms"] = list(self.blocked_terms)
        data["blocked_users"] = sorted(str(uid) for uid in self.blocked_users)
        return data


def _as_list(name: str, value: Any) -> Iterable[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise ConfigurationError(f"Setting '{name}' must be a list")
    return list(value)
