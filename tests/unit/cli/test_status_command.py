import inspect
import json
from collections.abc import Generator
from pathlib import Path

import pytest
from structlog.testing import capture_logs
from typer.testing import CliRunner

import agentprobe.cli.main as cli_main
from agentprobe import __version__
from agentprobe.config.settings import Settings
from agentprobe.detection.service import ConnectionsService
from agentprobe.providers.models import CommandResult


runner = CliRunner()


@pytest.fixture
def patched_cli(
    monkeypatch: pytest.MonkeyPatch, sample_registry, fake_probe
) -> Generator[list[Settings], None, None]:
    """Route the CLI to the fake probe and keep log output off stdout."""
    seen_settings: list[Settings] = []

    def build_service(settings: Settings) -> ConnectionsService:
        seen_settings.append(settings)
        return ConnectionsService(
            registry=sample_registry, probe=fake_probe, settings=settings
        )

    monkeypatch.setattr(cli_main, "build_service", build_service)
    monkeypatch.setattr(cli_main, "setup_logging", lambda **kwargs: None)
    with capture_logs():
        yield seen_settings


@pytest.mark.unit
def test_cli_package_exposes_command_module() -> None:
    import agentprobe.cli

    assert inspect.ismodule(agentprobe.cli.main)
    assert agentprobe.cli.main is cli_main
    assert callable(cli_main.main)
    assert agentprobe.cli.app is cli_main.app


@pytest.mark.unit
def test_version_flag() -> None:
    result = runner.invoke(cli_main.app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


@pytest.mark.unit
def test_providers_lists_catalog() -> None:
    result = runner.invoke(cli_main.app, ["providers"])

    assert result.exit_code == 0
    assert "codex" in result.output
    assert "Known Providers" in result.output


@pytest.mark.unit
def test_status_json_for_all_providers(patched_cli, fake_probe) -> None:
    fake_probe.script(
        "alpha",
        CommandResult(
            command="alpha", success=True, stdout="alpha 1.0.0", status=0, version="1.0.0"
        ),
    )

    result = runner.invoke(cli_main.app, ["status", "--json"])

    assert result.exit_code == 0, result.output
    payload = {entry["id"]: entry for entry in json.loads(result.stdout)}
    assert set(payload) == {"alpha", "beta", "empty"}
    assert payload["alpha"]["status"] == "connected"
    assert payload["alpha"]["version"] == "1.0.0"
    assert payload["beta"]["status"] == "missing"
    assert payload["beta"]["message"] == "Beta was not found in PATH."


@pytest.mark.unit
def test_status_single_provider(patched_cli, fake_probe) -> None:
    result = runner.invoke(
        cli_main.app, ["status", "--provider", "beta", "--timeout-ms", "500", "--json"]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [entry["id"] for entry in payload] == ["beta"]
    assert fake_probe.calls == [("beta", 500)]


@pytest.mark.unit
def test_status_table(patched_cli) -> None:
    result = runner.invoke(cli_main.app, ["status"])

    assert result.exit_code == 0, result.output
    assert "Provider Status" in result.output
    assert "missing" in result.output


@pytest.mark.unit
def test_unknown_provider_exits_with_error(patched_cli, fake_probe) -> None:
    result = runner.invoke(cli_main.app, ["status", "--provider", "nope"])

    assert result.exit_code == 2
    assert "Unknown provider" in result.output
    assert fake_probe.calls == []


@pytest.mark.unit
def test_store_and_log_level_overrides(patched_cli, tmp_path: Path) -> None:
    store = tmp_path / "custom.json"

    result = runner.invoke(
        cli_main.app,
        ["status", "--store", str(store), "--log-level", "debug", "--json"],
    )

    assert result.exit_code == 0, result.output
    settings = patched_cli[0]
    assert settings.store.path == store
    assert settings.logging.level == "DEBUG"


@pytest.mark.unit
def test_missing_config_file_is_reported(patched_cli, tmp_path: Path) -> None:
    result = runner.invoke(
        cli_main.app, ["status", "--config", str(tmp_path / "absent.toml")]
    )

    assert result.exit_code == 1
    assert "Configuration error" in result.output


@pytest.mark.unit
def test_invalid_log_level_is_reported(patched_cli) -> None:
    result = runner.invoke(cli_main.app, ["status", "--log-level", "chatty"])

    assert result.exit_code == 1
    assert "Configuration error" in result.output
