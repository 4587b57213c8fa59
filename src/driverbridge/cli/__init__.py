"""Typer command-line interface for driverbridge."""
