"""Unified CLI entry point for driverbridge.

Config precedence: settings.default.toml -> settings.<env>.toml -> settings.local.toml -> env vars (DRIVERBRIDGE_* with double underscores) -> CLI flags.
"""

from __future__ import annotations

import logging
import sys

import typer

from driverbridge.cli.response_cmd import response_app
from driverbridge.cli.service_cmd import service_app
from driverbridge.cli.settings_cmd import settings_app

try:
    from importlib.metadata import version

    VERSION = version("driverbridge")
except Exception:
    VERSION = "unknown"

APP_HELP = (
    "driverbridge — launch a local WebDriver service and normalize its responses. "
    "Config precedence: settings.default.toml -> settings.local.toml -> env vars (DRIVERBRIDGE_* with __) -> CLI flags."
)

app = typer.Typer(add_completion=True, help=APP_HELP)

app.add_typer(service_app, name="service")
app.add_typer(response_app, name="response")
app.add_typer(settings_app, name="settings")


def _configure_logging(verbose: bool) -> None:
    from pydantic import ValidationError

    from driverbridge.settings import get_settings

    try:
        debug = verbose or get_settings().debug
    except ValidationError:
        # Reported by whichever command loads the settings.
        debug = verbose
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
    )
    # Quieten noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log probe and state-transition detail (also enabled by DRIVERBRIDGE_DEBUG=true)."),
) -> None:
    """Show help when no subcommand is provided."""
    if version:
        typer.echo(f"driverbridge {VERSION}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()
    _configure_logging(verbose)


if __name__ == "__main__":
    app()
