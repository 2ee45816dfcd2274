"""Tests for the sptp CLI."""
from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

from typer.testing import CliRunner, Result

from sptp import __version__
from sptp.cli import app
from sptp.exit_codes import ExitCode

runner = CliRunner()

WriteConfig = Callable[..., Path]


def _json_payload(result: Result) -> dict[str, object]:
    """Return the JSON document printed by the command, skipping log lines."""
    output = result.stdout
    return json.loads(output[output.index("{") :])


def test_version_flag() -> None:
    """--version prints the package version."""
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"sptp {__version__}" in result.output


def test_help_without_subcommand() -> None:
    """Running without a subcommand shows help."""
    result = runner.invoke(app, [])

    assert result.exit_code == 0
    assert "config" in result.output


def test_config_show_json_merges_file_and_flags(write_config: WriteConfig) -> None:
    """config show --json renders the resolved configuration."""
    path = write_config("iface: eth1\ndscp: 35\nservers:\n  192.0.2.50: 3\n")

    result = runner.invoke(
        app,
        [
            "--config",
            str(path),
            "--iface",
            "eth9",
            "--interval",
            "2s",
            "config",
            "show",
            "--json",
        ],
    )

    assert result.exit_code == 0, result.output
    payload = _json_payload(result)
    assert payload["iface"] == "eth9"
    assert payload["dscp"] == 35
    assert payload["interval"] == "2s"
    assert payload["servers"] == {"192.0.2.50": 3}


def test_config_show_servers_follow_flag_order() -> None:
    """Repeated --server flags become priorities in order."""
    result = runner.invoke(
        app,
        ["-s", "192.0.2.1", "-s", "192.0.2.2", "-i", "eth0", "config", "show", "--json"],
    )

    assert result.exit_code == 0, result.output
    payload = _json_payload(result)
    assert payload["servers"] == {"192.0.2.1": 0, "192.0.2.2": 1}


def test_config_show_table() -> None:
    """The default rendering is a table of keys."""
    result = runner.invoke(app, ["-s", "192.0.2.1", "-i", "eth0", "config", "show"])

    assert result.exit_code == 0, result.output
    assert "exchangetimeout" in result.output
    assert "iface" in result.output


def test_config_validate_ok() -> None:
    """A resolvable configuration validates."""
    result = runner.invoke(app, ["-s", "192.0.2.1", "-i", "eth0", "config", "validate"])

    assert result.exit_code == 0
    assert "Configuration OK." in result.output


def test_config_validate_reports_violation() -> None:
    """Validation failures exit with the validation code."""
    result = runner.invoke(app, ["-i", "eth0", "config", "validate"])

    assert result.exit_code == ExitCode.VALIDATION
    assert "at least one server must be specified" in result.output


def test_missing_config_file_is_environment_error(tmp_path: Path) -> None:
    """An unreadable config file exits with the environment code."""
    result = runner.invoke(
        app,
        ["--config", str(tmp_path / "absent.yaml"), "-s", "192.0.2.1", "config", "validate"],
    )

    assert result.exit_code == ExitCode.ENVIRONMENT
    assert "reading config from" in result.output


def test_malformed_config_file_is_validation_error(write_config: WriteConfig) -> None:
    """Parse failures exit with the validation code."""
    path = write_config("dscp: high\n")

    result = runner.invoke(app, ["--config", str(path), "config", "validate"])

    assert result.exit_code == ExitCode.VALIDATION
    assert "dscp to be an integer" in result.output


def test_invalid_interval_flag() -> None:
    """An unparsable --interval is rejected before resolution."""
    result = runner.invoke(app, ["--interval", "soon", "config", "validate"])

    assert result.exit_code == ExitCode.VALIDATION
    assert "Invalid --interval" in result.output
