"""
chatwarden
==========

Moderation decision engine for real-time chat communities: spam and raid
detection, warning escalation and command throttling. Running this module
starts the interactive console with a dry-run executor so policies can be
tried without a chat platform attached.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. CHATWARDEN_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("CHATWARDEN_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


import asyncio
from dotenv import load_dotenv

from chatwarden.configuration.app_configuration import AppConfig, resolve_config_path
from chatwarden.moderation.errors import ConfigurationError
from chatwarden.moderation.orchestrator import ModerationOrchestrator
from chatwarden.services.action_executor import LoggingActionExecutor
from chatwarden.services.moderation_service import ModerationService
from chatwarden.ui.console import ConsoleControl, console_session
from chatwarden.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment(base_dir: Path) -> None:
    """Load ``.env`` from the base directory so CHATWARDEN_* overrides apply."""
    load_dotenv(dotenv_path=base_dir / ".env")


def build_service(app_config: AppConfig) -> ModerationService:
    """Create the orchestrator and dry-run service from the loaded configuration.

    Raises
    ------
    ConfigurationError
        If the moderation section of the config file is invalid.
    """
    policy = app_config.moderation_policy
    orchestrator = ModerationOrchestrator(policy)
    return ModerationService(
        orchestrator,
        LoggingActionExecutor(),
        maintenance_interval=app_config.maintenance_interval_events,
    )


async def async_main() -> int:
    """Bootstrap configuration, the moderation service and the console, returning an exit code."""
    base_dir = resolve_base_dir()
    os.chdir(base_dir)
    load_environment(base_dir)

    app_config = AppConfig(resolve_config_path())
    try:
        service = build_service(app_config)
    except ConfigurationError as exc:
        logger.critical("Invalid moderation configuration: %s", exc)
        return 1

    logger.info("Moderation engine ready (policy: %s)", service.orchestrator.settings.as_dict())

    control = ConsoleControl(service)
    try:
        async with console_session(control, app_config.console_prompt):
            await control.shutdown_event.wait()
    finally:
        await service.shutdown()

    return 0


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    logger.info("Starting chatwarden…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except Exception as exc:
        logger.critical("An unexpected error occurred: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    print(f"Exited with code: {main()}")
