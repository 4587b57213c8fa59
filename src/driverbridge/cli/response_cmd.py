"""CLI command for decoding a saved driver response body."""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich.console import Console

from driverbridge.exceptions import ResponseError

response_app = typer.Typer(help="Decode driver response bodies.")
console = Console()


@response_app.command("decode")
def decode(
    file: str = typer.Argument(..., help="JSON response body file, or '-' for stdin."),
) -> None:
    """Normalize a legacy or spec-compliant response body and print it."""
    from driverbridge.remote.response import Response

    text = sys.stdin.read() if file == "-" else Path(file).read_text(encoding="utf-8")
    try:
        response = Response.from_json(text)
    except ResponseError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    dialect = "spec-compliant" if response.is_spec_compliant else "legacy"
    console.print(f"Dialect: {dialect}")
    console.print(f"Summary: {response}", markup=False)
    console.print_json(response.to_json())
