"""Typer-powered command line for inspecting the sptp client configuration.

The root callback collects the same overrides the client daemon accepts
(config file, servers, interface, monitoring port, interval and DSCP); the
``config`` subcommands resolve them through :func:`sptp.loader.prepare_config`.
"""
from __future__ import annotations

import json
import logging
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import get_version
from .config import Config, ConfigParseError, ConfigReadError, ConfigValidationError
from .durations import DurationError, parse_duration
from .exit_codes import ExitCode
from .loader import prepare_config

console = Console()
err_console = Console(stderr=True)

CONFIG_FILE_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    dir_okay=False,
    help="Path to the client's YAML config file.",
)

SERVER_OPTION = typer.Option(
    None,
    "--server",
    "-s",
    help="Server hostname or address. Repeat to add more; order sets priority.",
)

IFACE_OPTION = typer.Option(
    None,
    "--iface",
    "-i",
    help="Network interface to use.",
)

MONITORING_PORT_OPTION = typer.Option(
    None,
    "--monitoringport",
    help="Port for the monitoring listener (0 disables it).",
)

INTERVAL_OPTION = typer.Option(
    None,
    "--interval",
    help="Polling interval, e.g. 1s or 250ms.",
)

DSCP_OPTION = typer.Option(
    None,
    "--dscp",
    help="DSCP value to mark outgoing packets with.",
)

app = typer.Typer(
    add_completion=False,
    help=textwrap.dedent(
        """
        sptp client configuration tool.

        Resolves defaults, the YAML config file and command line overrides
        into the configuration the client would run with.
        """
    ).strip(),
)
config_app = typer.Typer(help="Inspect and validate the effective configuration.")
app.add_typer(config_app, name="config")


@dataclass
class CliOptions:
    """Overrides collected by the root callback."""

    config_file: Path | None = None
    servers: list[str] = field(default_factory=list)
    iface: str | None = None
    monitoring_port: int | None = None
    interval: int | None = None
    dscp: int | None = None


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(message: str, code: ExitCode) -> NoReturn:
    err_console.print(f"[red]{escape(message)}[/red]", soft_wrap=True)
    raise typer.Exit(code=int(code))


def _get_options(ctx: typer.Context) -> CliOptions:
    options = ctx.obj
    if isinstance(options, CliOptions):
        return options
    return CliOptions()


def _resolve(ctx: typer.Context) -> Config:
    options = _get_options(ctx)
    try:
        return prepare_config(
            options.config_file,
            options.servers,
            iface=options.iface,
            monitoring_port=options.monitoring_port,
            interval=options.interval,
            dscp=options.dscp,
        )
    except ConfigReadError as exc:
        _fail(str(exc), ExitCode.ENVIRONMENT)
    except (ConfigParseError, ConfigValidationError) as exc:
        _fail(str(exc), ExitCode.VALIDATION)


@app.callback(invoke_without_command=True)
def _root(  # noqa: D401 - Typer displays help for us, docstring optional.
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show the sptp version and exit.",
    ),
    config_file: Path | None = CONFIG_FILE_OPTION,
    servers: list[str] | None = SERVER_OPTION,
    iface: str | None = IFACE_OPTION,
    monitoring_port: int | None = MONITORING_PORT_OPTION,
    interval: str | None = INTERVAL_OPTION,
    dscp: int | None = DSCP_OPTION,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
) -> None:
    """Entry point callback invoked for every CLI execution."""
    if version:
        console.print(f"sptp {get_version()}")
        raise typer.Exit(code=int(ExitCode.OK))

    _configure_logging(verbose)

    interval_ns: int | None = None
    if interval is not None:
        try:
            interval_ns = parse_duration(interval)
        except DurationError as exc:
            _fail(f"Invalid --interval: {exc}", ExitCode.VALIDATION)

    ctx.obj = CliOptions(
        config_file=config_file,
        servers=list(servers or []),
        iface=iface,
        monitoring_port=monitoring_port,
        interval=interval_ns,
        dscp=dscp,
    )

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(code=int(ExitCode.OK))


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit configuration as JSON instead of a table.",
    ),
) -> None:
    """Display the effective configuration after merges."""
    data = _resolve(ctx).to_dict()

    if json_output:
        console.print_json(data=data)
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Key", style="bold")
    table.add_column("Value")

    for key, value in data.items():
        if isinstance(value, dict):
            rendered = json.dumps(value, indent=2, sort_keys=True)
        else:
            rendered = str(value)
        table.add_row(key, rendered)

    console.print(table)


@config_app.command("validate")
def config_validate(ctx: typer.Context) -> None:
    """Resolve the configuration and report whether it is valid."""
    _resolve(ctx)
    console.print("[green]Configuration OK.[/green]")


def main() -> None:  # pragma: no cover - console script shim
    """Run the Typer application."""
    app()


__all__ = ["app", "main"]
