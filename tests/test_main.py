import sys
from unittest.mock import AsyncMock, patch

import pytest

from chatwarden import main
from chatwarden.configuration.app_configuration import AppConfig


def test_resolve_base_dir_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("CHATWARDEN_HOME", str(tmp_path))

    assert main.resolve_base_dir() == tmp_path.resolve()


def test_resolve_base_dir_compiled(tmp_path, monkeypatch):
    monkeypatch.delenv("CHATWARDEN_HOME", raising=False)
    monkeypatch.setattr(sys, "frozen", True, raising=False)
    monkeypatch.setattr(sys, "argv", [str(tmp_path / "chatwarden.exe")])

    assert main.resolve_base_dir() == tmp_path.resolve()


def test_resolve_base_dir_source(monkeypatch):
    monkeypatch.delenv("CHATWARDEN_HOME", raising=False)
    monkeypatch.setattr(sys, "frozen", False, raising=False)
    monkeypatch.setattr(sys, "compiled", False, raising=False)

    assert main.resolve_base_dir() == main.Path(main.__file__).resolve().parents[2]


def test_build_service_uses_config(tmp_path):
    config_path = tmp_path / "app_config.yml"
    config_path.write_text(
        "moderation:\n  spam_threshold: 2\nservice:\n  maintenance_interval_events: 7\n",
        encoding="utf-8",
    )

    service = main.build_service(AppConfig(config_path))

    assert service.orchestrator.settings.spam_threshold == 2
    assert service.maintenance_interval == 7


@pytest.mark.asyncio
async def test_async_main_rejects_invalid_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config_path = tmp_path / "app_config.yml"
    config_path.write_text("moderation:\n  warning_limit: 0\n", encoding="utf-8")
    monkeypatch.setenv("CHATWARDEN_HOME", str(tmp_path))
    monkeypatch.setenv("CHATWARDEN_CONFIG", str(config_path))

    assert await main.async_main() == 1


@pytest.mark.asyncio
async def test_async_main_rejects_invalid_service_section(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config_path = tmp_path / "app_config.yml"
    config_path.write_text("service:\n  maintenance_interval_events: often\n", encoding="utf-8")
    monkeypatch.setenv("CHATWARDEN_HOME", str(tmp_path))
    monkeypatch.setenv("CHATWARDEN_CONFIG", str(config_path))

    assert await main.async_main() == 1


@pytest.mark.asyncio
async def test_async_main_runs_until_shutdown(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CHATWARDEN_HOME", str(tmp_path))
    monkeypatch.setenv("CHATWARDEN_CONFIG", str(tmp_path / "missing.yml"))

    async def fake_run_console(control, prompt="> "):
        control.request_shutdown()

    with patch("chatwarden.ui.console.run_console", side_effect=fake_run_console):
        assert await main.async_main() == 0


def test_main_returns_zero_on_keyboard_interrupt():
    with patch("chatwarden.main.async_main", new=AsyncMock(side_effect=KeyboardInterrupt)):
        assert main.main() == 0


def test_main_returns_one_on_unexpected_error():
    with patch("chatwarden.main.async_main", new=AsyncMock(side_effect=RuntimeError("boom"))):
        assert main.main() == 1
