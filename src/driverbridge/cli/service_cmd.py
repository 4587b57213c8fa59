"""CLI commands for running and probing a local driver service."""

from __future__ import annotations

import dataclasses
import time
from typing import Optional

import httpx
import typer
from rich.console import Console

from driverbridge.exceptions import ServiceError

service_app = typer.Typer(help="Run or probe a local driver service.")
console = Console()


@service_app.command("run")
def run_service(
    driver_path: Optional[str] = typer.Option(None, "--driver-path", "-d", help="Directory containing the driver executable."),
    file_name: Optional[str] = typer.Option(None, "--file-name", help="Driver executable file name."),
    port: int = typer.Option(0, "--port", "-p", min=0, help="Listening port (0 = pick a free port)."),
    binary: Optional[str] = typer.Option(None, "--binary", help="Browser binary the driver should launch."),
) -> None:
    """Start the driver, print its URL, and keep it running until Ctrl-C."""
    from driverbridge.service import create_default_service
    from driverbridge.service.lifecycle import DriverService

    try:
        service = create_default_service(driver_path=driver_path, file_name=file_name)
    except ServiceError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    overrides: dict = {}
    if port:
        overrides["port"] = port
    if binary is not None:
        overrides["browser_binary_path"] = binary
    if overrides:
        service = DriverService(dataclasses.replace(service.config, **overrides))

    try:
        handle = service.start()
    except ServiceError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Driver service listening at [bold]{handle.base_url}[/bold] (pid {handle.pid})")
    console.print("Press Ctrl-C to stop.")
    try:
        while service.is_running:
            time.sleep(0.5)
        console.print("[yellow]Driver process exited on its own.[/yellow]")
    except KeyboardInterrupt:
        pass
    finally:
        forced = service.stop()
        if forced:
            console.print("[yellow]Driver did not exit in time and was killed.[/yellow]")
        else:
            console.print("Driver service stopped.")


@service_app.command("probe")
def probe_service(
    url: str = typer.Argument(..., help="Base URL of a running driver, e.g. http://localhost:4444/"),
    timeout: float = typer.Option(5.0, "--timeout", "-t", min=0.1, help="Request timeout in seconds."),
) -> None:
    """Send one readiness probe to a running driver and report the result."""
    from driverbridge.service.probe import ProbeResult, probe

    with httpx.Client() as client:
        result = probe(client, url, timeout)

    if result is ProbeResult.READY:
        console.print(f"[green]✓[/green] {url} is ready")
        return
    console.print(f"[red]✗[/red] {url}: {result.value}")
    raise typer.Exit(code=1)
