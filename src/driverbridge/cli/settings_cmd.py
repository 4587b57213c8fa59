"""``driverbridge settings``: show the resolved configuration and check it."""

from __future__ import annotations

import json
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console

settings_app = typer.Typer(help="Inspect and validate driverbridge configuration.")
console = Console()

SECTIONS = ("service", "driver")


@settings_app.command("show")
def show_settings(
    section: Optional[str] = typer.Option(None, "--section", "-s", help=f"Only show one section ({', '.join(SECTIONS)})."),
) -> None:
    """Print the resolved settings as JSON."""
    from driverbridge.settings import get_settings

    data = get_settings().model_dump(mode="json")
    if section is not None:
        if section not in SECTIONS:
            console.print(f"[red]Unknown section {section!r}.[/red] Choose one of: {', '.join(SECTIONS)}")
            raise typer.Exit(code=2)
        data = data[section]
    console.print_json(json.dumps(data, default=str))


@settings_app.command("validate")
def validate_settings() -> None:
    """Check that the settings load and describe a launchable driver service.

    A driver executable that cannot be located is reported but does not fail
    validation, since ``service run --driver-path`` can still supply it.
    """
    from driverbridge.exceptions import DriverExecutableNotFoundError
    from driverbridge.service.config import ServiceConfig
    from driverbridge.service.discovery import find_driver_executable
    from driverbridge.settings import get_settings

    try:
        settings = get_settings()
        config = ServiceConfig.from_settings(settings)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]✗[/red] Settings validation failed: {e}")
        raise typer.Exit(code=1)

    console.print("[green]✓[/green] Settings are valid.")
    console.print(f"  Environment: {settings.env}")
    console.print(f"  Service URL: {config.service_url}" + (" (port allocated at start)" if config.port == 0 else ""))
    console.print(f"  Timeouts: start {config.initialization_timeout}s, stop {config.termination_timeout}s")

    if config.executable_path:
        console.print(f"  Driver: {config.executable}")
        return
    try:
        directory = find_driver_executable(config.executable_file_name, config.download_url)
        console.print(f"  Driver: {config.executable_file_name} found in {directory}")
    except DriverExecutableNotFoundError:
        console.print(
            f"  [yellow]Driver {config.executable_file_name!r} not found in the working directory or on PATH.[/yellow] "
            f"Download it from {config.download_url}"
        )
