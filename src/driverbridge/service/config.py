"""Immutable launch parameters for a driver service."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from driverbridge.settings.config import Settings

# Empty means "let the driver locate the browser itself".
DEFAULT_BROWSER_BINARY_PATH = ""
DEFAULT_DOWNLOAD_URL = "https://github.com/jgraham/wires/releases"


@dataclass(frozen=True)
class ServiceConfig:
    """Everything needed to spawn, reach and stop one driver process.

    ``port == 0`` asks the service to allocate a free ephemeral port before
    spawning; the lifecycle then works on a copy with the concrete port.
    Timeouts are in seconds and are hard deadlines.
    """

    executable_path: str
    executable_file_name: str
    port: int = 0
    host: str = "localhost"
    browser_communication_port: int = -1
    browser_binary_path: str = DEFAULT_BROWSER_BINARY_PATH
    extra_arguments: tuple[str, ...] = field(default_factory=tuple)
    download_url: str = DEFAULT_DOWNLOAD_URL
    initialization_timeout: float = 2.0
    termination_timeout: float = 0.1
    poll_interval: float = 0.25
    probe_timeout: float = 5.0
    has_shutdown_endpoint: bool = False

    def __post_init__(self) -> None:
        if self.port < 0:
            raise ValueError(f"port must be 0 (auto) or positive, got {self.port}")
        for name in ("initialization_timeout", "termination_timeout", "poll_interval", "probe_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        # Accept any iterable for convenience; store an immutable tuple.
        object.__setattr__(self, "extra_arguments", tuple(self.extra_arguments))

    @classmethod
    def from_settings(cls, settings: "Settings", executable_path: str | None = None) -> "ServiceConfig":
        """Build a config from ``driverbridge.settings`` sections."""
        svc = settings.service
        drv = settings.driver
        return cls(
            executable_path=executable_path if executable_path is not None else drv.executable_path,
            executable_file_name=drv.executable_file_name,
            port=svc.port,
            host=svc.host,
            browser_communication_port=drv.browser_communication_port,
            browser_binary_path=drv.browser_binary_path,
            extra_arguments=tuple(drv.extra_arguments),
            download_url=drv.download_url,
            initialization_timeout=svc.initialization_timeout_sec,
            termination_timeout=svc.termination_timeout_sec,
            poll_interval=svc.poll_interval_sec,
            probe_timeout=svc.probe_timeout_sec,
            has_shutdown_endpoint=svc.has_shutdown_endpoint,
        )

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def executable(self) -> str:
        """Full path of the driver executable."""
        if not self.executable_path:
            return self.executable_file_name
        return str(Path(self.executable_path) / self.executable_file_name)

    @property
    def service_url(self) -> str:
        """Base URL the driver answers on, with a trailing slash."""
        return f"http://{self.host}:{self.port}/"

    def _argument_pairs(self) -> list[tuple[str, str]]:
        pairs = []
        if self.browser_communication_port > 0:
            pairs.append(("--marionette-port", str(self.browser_communication_port)))
        if self.port > 0:
            pairs.append(("--webdriver-port", str(self.port)))
        if self.browser_binary_path:
            pairs.append(("--binary", self.browser_binary_path))
        return pairs

    @property
    def command_line_arguments(self) -> str:
        """Driver arguments as one space-joined string, for display and logs.

        Optional arguments are emitted only when their value is set; the
        browser binary path is quoted so embedded spaces stay readable.
        """
        args = [shlex.quote(a) for a in self.extra_arguments]
        for flag, value in self._argument_pairs():
            args.append(f'{flag} "{value}"' if flag == "--binary" else f"{flag} {value}")
        return " ".join(args).strip()

    def argv(self) -> list[str]:
        """Argument vector for ``subprocess.Popen``; values are passed through untouched."""
        args = [self.executable, *self.extra_arguments]
        for flag, value in self._argument_pairs():
            args.extend((flag, value))
        return args
