from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
import yaml

from chatwarden.configuration.policy_settings import PolicySettings
from chatwarden.moderation.errors import ConfigurationError
from chatwarden.util.logger import get_logger

logger = get_logger("app_configuration")


DEFAULT_CONFIG_PATH = Path("./config/app_config.yml")


def resolve_config_path() -> Path:
    """Return the config path, honouring the ``CHATWARDEN_CONFIG`` environment variable."""
    return Path(os.getenv("CHATWARDEN_CONFIG") or DEFAULT_CONFIG_PATH).resolve()


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and resolves
    the ``moderation`` section into a validated :class:`PolicySettings`.
    Uses fcntl file locks for safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Shared lock while reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                if data is None:
                    return {}
                if not isinstance(data, dict):
                    logger.error("[APP CONFIGURATION] Config %s must contain a mapping, got %s.", self.config_path, type(data).__name__)
                    return {}
                return data
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        The returned dict is the internal cache. Callers should not mutate it.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def moderation_policy(self) -> PolicySettings:
        """Return the ``moderation`` section as a validated PolicySettings.

        Raises:
            ConfigurationError: If the section holds unknown keys or invalid values.
        """
        section = self._data.get("moderation", {})
        if section is not None and not isinstance(section, dict):
            raise ConfigurationError("The 'moderation' section must be a mapping")
        return PolicySettings.from_mapping(section)

    @property
    def maintenance_interval_events(self) -> int:
        """Number of handled events between opportunistic garbage collections.

        Default is 500 events.

        Raises:
            ConfigurationError: If the value is not an integer.
        """
        service_config = self._data.get("service", {})
        if not isinstance(service_config, dict):
            return 500
        raw_value = service_config.get("maintenance_interval_events", 500)
        try:
            return max(1, int(raw_value))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"Setting 'maintenance_interval_events' must be an integer, got {raw_value!r}"
            ) from exc

    @property
    def console_prompt(self) -> str:
        """Return the prompt shown by the interactive console."""
        console_config = self._data.get("console", {})
        if isinstance(console_config, dict):
            return str(console_config.get("prompt", "> "))
        return "> "
