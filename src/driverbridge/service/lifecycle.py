"""Driver service lifecycle: spawn, readiness polling and teardown.

``DriverService`` owns exactly one driver process bound to exactly one
port. Typical use::

    from driverbridge.service import DriverService, ServiceConfig

    config = ServiceConfig(executable_path="/opt/drivers", executable_file_name="wires")
    with DriverService(config) as handle:
        httpx.post(handle.base_url + "session", json=...)

States move ``STOPPED -> STARTING -> RUNNING -> STOPPING -> STOPPED``;
a failed start ends in ``FAULTED``, after which the instance must be
discarded.
"""

from __future__ import annotations

import dataclasses
import logging
import subprocess
import threading
import time
from dataclasses import dataclass

import httpx

from driverbridge.exceptions import InvalidServiceStateError, SpawnFailedError, StartTimeoutError
from driverbridge.models.states import ServiceState, can_transition
from driverbridge.service.config import ServiceConfig
from driverbridge.service.ports import find_free_port, release_port
from driverbridge.service.probe import ProbeResult, probe

logger = logging.getLogger(__name__)

SHUTDOWN_PATH = "shutdown"

# Upper bound on reaping a process killed after a failed start.
_REAP_TIMEOUT = 5.0


@dataclass(frozen=True)
class ServiceHandle:
    """What a caller needs to talk to a running driver service."""

    base_url: str
    port: int
    pid: int


class DriverService:
    """Start and stop one local driver process.

    Args:
        config: Launch parameters. When ``config.port`` is 0 a free port is
            allocated at ``start()`` and ``self.config`` reflects it.
        http_client: Optional ``httpx.Client`` for the readiness probe and
            shutdown request. One is created per ``start()`` otherwise.
    """

    def __init__(self, config: ServiceConfig, *, http_client: httpx.Client | None = None) -> None:
        self._requested_config = config
        self._config = config
        self._state = ServiceState.STOPPED
        self._state_lock = threading.Lock()
        self._process: subprocess.Popen | None = None
        self._http_client = http_client
        self._owns_client = http_client is None
        self._reserved_port: int | None = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def config(self) -> ServiceConfig:
        """The launch config, with the concrete port once started."""
        return self._config

    @property
    def service_url(self) -> str:
        return self._config.service_url

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def is_running(self) -> bool:
        """True while the spawned process has not exited."""
        return self._process is not None and self._process.poll() is None

    def __repr__(self) -> str:
        return f"DriverService({self._config.executable_file_name!r}, port={self._config.port}, state={self._state.value})"

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> ServiceHandle:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> ServiceHandle:
        """Spawn the driver and block until it answers the readiness probe.

        Returns:
            A ``ServiceHandle`` with the resolved base URL.

        Raises:
            InvalidServiceStateError: If the service is not ``STOPPED``.
            SpawnFailedError: If the executable cannot be run or exits early.
            StartTimeoutError: If the driver is not ready before
                ``initialization_timeout``.
        """
        self._transition(ServiceState.STARTING, operation="start")

        self._config = self._requested_config
        self._process = None
        try:
            if self._config.port == 0:
                port = find_free_port()
                self._reserved_port = port
                self._config = dataclasses.replace(self._config, port=port)
            argv = self._config.argv()
            logger.info("Starting driver service: %s", " ".join(argv))
            self._process = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except (OSError, ValueError) as e:
            self._fault()
            raise SpawnFailedError(self._config.executable, self._config.download_url, str(e)) from e
        except BaseException:
            self._fault()
            raise

        try:
            self._wait_until_ready()
        except BaseException:
            self._fault()
            raise

        self._transition(ServiceState.RUNNING, operation="start")
        logger.info("Driver service ready at %s (pid=%d)", self.service_url, self._process.pid)
        return ServiceHandle(base_url=self.service_url, port=self._config.port, pid=self._process.pid)

    def stop(self) -> bool:
        """Stop the driver process. Safe to call repeatedly.

        Sends a best-effort graceful signal and waits for the process to
        exit, both within one ``termination_timeout`` deadline, then kills
        it. Death after the kill is not guaranteed on return: the process
        handle is kept, so ``is_running`` and ``pid`` still report on it.

        Returns:
            True if a forced kill was needed, False otherwise (including when
            there was nothing to stop).
        """
        with self._state_lock:
            if self._state in (ServiceState.STOPPED, ServiceState.FAULTED):
                return False
            if not can_transition(self._state, ServiceState.STOPPING):
                raise InvalidServiceStateError("stop", self._state.value)
            self._state = ServiceState.STOPPING

        timeout = self._config.termination_timeout
        deadline = time.monotonic() + timeout
        forced = False
        try:
            self._request_graceful_exit(timeout)
            forced = self._wait_or_kill(max(0.0, deadline - time.monotonic()))
        finally:
            self._release()
            self._transition(ServiceState.STOPPED, operation="stop")

        if forced:
            logger.info("Driver service on %s did not exit in %.2fs; killed", self.service_url, self._config.termination_timeout)
        else:
            logger.info("Driver service on %s stopped", self.service_url)
        return forced

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _transition(self, target: ServiceState, *, operation: str) -> None:
        with self._state_lock:
            if not can_transition(self._state, target):
                raise InvalidServiceStateError(operation, self._state.value)
            logger.debug("Service state %s -> %s", self._state.value, target.value)
            self._state = target

    def _client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client()
        return self._http_client

    def _wait_until_ready(self) -> None:
        """Poll until READY, the process exits, or the deadline passes."""
        cfg = self._config
        deadline = time.monotonic() + cfg.initialization_timeout
        client = self._client()
        attempts = 0
        while True:
            exit_code = self._process.poll()
            if exit_code is not None:
                raise SpawnFailedError(
                    cfg.executable,
                    cfg.download_url,
                    f"process exited with code {exit_code} before becoming ready",
                )

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            attempts += 1
            if probe(client, cfg.service_url, min(cfg.probe_timeout, remaining)) is ProbeResult.READY:
                return

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            time.sleep(min(cfg.poll_interval, remaining))

        logger.warning(
            "Driver service on %s not ready after %.2fs (%d probes)",
            cfg.service_url,
            cfg.initialization_timeout,
            attempts,
        )
        raise StartTimeoutError(cfg.service_url, cfg.initialization_timeout, cfg.download_url)

    def _request_graceful_exit(self, timeout: float) -> None:
        """Ask the driver to exit: shutdown endpoint if it has one, else SIGTERM."""
        if self._process is None or self._process.poll() is not None:
            return
        if self._config.has_shutdown_endpoint:
            url = self.service_url + SHUTDOWN_PATH
            try:
                self._client().get(url, headers={"Connection": "close"}, timeout=timeout)
            except httpx.HTTPError as e:
                logger.debug("Shutdown request to %s failed: %s", url, e)
            return
        try:
            self._process.terminate()
        except ProcessLookupError:
            pass

    def _wait_or_kill(self, timeout: float) -> bool:
        """Wait up to *timeout* for exit; kill on expiry. Returns True if killed.

        After a kill the process is reaped for at most ``termination_timeout``.
        """
        proc = self._process
        if proc is None:
            return False
        try:
            proc.wait(timeout=timeout)
            return False
        except subprocess.TimeoutExpired:
            pass
        try:
            proc.kill()
        except ProcessLookupError:
            return False
        try:
            proc.wait(timeout=self._config.termination_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Driver process %d still alive after kill", proc.pid)
        return True

    def _fault(self) -> None:
        """Kill anything spawned and enter the terminal FAULTED state."""
        proc = self._process
        if proc is not None and proc.poll() is None:
            proc.kill()
            try:
                proc.wait(timeout=_REAP_TIMEOUT)
            except subprocess.TimeoutExpired:
                logger.warning("Driver process %d still alive after kill", proc.pid)
        self._release()
        self._transition(ServiceState.FAULTED, operation="start")

    def _release(self) -> None:
        if self._reserved_port is not None:
            release_port(self._reserved_port)
            self._reserved_port = None
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None
