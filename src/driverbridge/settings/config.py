"""Configuration loader for driverbridge using Pydantic settings.

Config precedence (highest wins):
  1. CLI flags (where applicable)
  2. Environment variables (DRIVERBRIDGE_* with __ for nesting)
  3. settings.local.toml
  4. settings.<env>.toml
  5. settings.default.toml
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = Path(os.getenv("DRIVERBRIDGE_PROJECT_ROOT", _THIS_DIR.parents[2]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "DRIVERBRIDGE_ENV"
DEFAULT_ENV = "local"


def _resolve_env() -> str:
    return (os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _load_toml(path: Path) -> dict[str, Any]:
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ServiceSettings(BaseSettings):
    """How the driver service is reached, polled and torn down."""

    model_config = SettingsConfigDict(env_prefix="DRIVERBRIDGE_SERVICE__")

    host: str = "localhost"
    port: int = 0  # 0 = allocate a free ephemeral port
    initialization_timeout_sec: float = 2.0
    termination_timeout_sec: float = 0.1
    poll_interval_sec: float = 0.25
    probe_timeout_sec: float = 5.0
    has_shutdown_endpoint: bool = False

    @field_validator("port")
    @classmethod
    def _port_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("port must be 0 (auto) or a positive integer")
        return v


class DriverSettings(BaseSettings):
    """Driver executable and browser launch options."""

    model_config = SettingsConfigDict(env_prefix="DRIVERBRIDGE_DRIVER__")

    executable_path: str = ""  # empty = search cwd and PATH
    executable_file_name: str = "wires"
    download_url: str = "https://github.com/jgraham/wires/releases"
    browser_binary_path: str = ""
    browser_communication_port: int = -1
    extra_arguments: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Root driverbridge settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="DRIVERBRIDGE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    debug: bool = False

    service: ServiceSettings = Field(default_factory=ServiceSettings)
    driver: DriverSettings = Field(default_factory=DriverSettings)

    @model_validator(mode="before")
    @classmethod
    def _merge_toml_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer TOML config files before env var overrides."""
        defaults = _load_toml(CONFIG_DIR / "settings.default.toml")
        env_name = (values.get("env") or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
        env_overrides = _load_toml(CONFIG_DIR / f"settings.{env_name}.toml")
        local_overrides = _load_toml(CONFIG_DIR / "settings.local.toml")

        # Merge: defaults < env-specific < local < explicit values
        merged: dict[str, Any] = {}
        for layer in (defaults, env_overrides, local_overrides, values):
            for key, val in layer.items():
                if isinstance(val, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **val}
                else:
                    merged[key] = val
        return merged

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Normalize a relative driver directory against project_root."""
        path = self.driver.executable_path
        if path and not Path(path).is_absolute():
            self.driver.executable_path = str(self.project_root / path)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton settings instance (cached)."""
    return Settings()
