"""driverbridge — launch a local WebDriver service and normalize its responses."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("driverbridge")
except Exception:
    __version__ = "0.0.0"
