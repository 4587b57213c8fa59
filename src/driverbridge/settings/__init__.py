"""Layered settings for driverbridge (TOML files + ``DRIVERBRIDGE_*`` env vars)."""

from driverbridge.settings.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
