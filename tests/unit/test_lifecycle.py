"""Unit tests for DriverService state handling (no real driver process)."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock

import httpx
import pytest

from driverbridge.exceptions import InvalidServiceStateError, SpawnFailedError, StartTimeoutError
from driverbridge.models.states import ServiceState
from driverbridge.service.config import ServiceConfig
from driverbridge.service.lifecycle import DriverService
from driverbridge.service.ports import reserved_ports


def _config(**overrides) -> ServiceConfig:
    params = dict(
        executable_path="/opt/drivers",
        executable_file_name="wires",
        host="127.0.0.1",
        download_url="https://example.test/driver",
        initialization_timeout=0.3,
        termination_timeout=0.1,
        poll_interval=0.01,
        probe_timeout=0.1,
    )
    params.update(overrides)
    return ServiceConfig(**params)


def _fake_process(alive: bool = True) -> MagicMock:
    proc = MagicMock(spec=subprocess.Popen)
    proc.pid = 4242
    proc.poll.return_value = None if alive else 1
    proc.wait.return_value = 0
    return proc


def _client(status: int = 500, content_type: str = "application/json") -> httpx.Client:
    def handler(request):
        return httpx.Response(status, headers={"content-type": content_type}, content=b"{}")

    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture()
def popen(monkeypatch):
    """Patch ``subprocess.Popen`` in the lifecycle module with a fake process factory."""
    proc = _fake_process()
    factory = MagicMock(return_value=proc)
    monkeypatch.setattr("driverbridge.service.lifecycle.subprocess.Popen", factory)
    return factory


class TestStart:
    def test_ready_on_legacy_reply(self, popen):
        service = DriverService(_config(), http_client=_client(500))
        handle = service.start()
        assert service.state is ServiceState.RUNNING
        assert handle.port == service.config.port > 0
        assert handle.base_url == f"http://127.0.0.1:{handle.port}/"
        assert handle.pid == 4242

    def test_ready_on_spec_compliant_reply(self, popen):
        service = DriverService(_config(), http_client=_client(200))
        service.start()
        assert service.state is ServiceState.RUNNING

    def test_auto_port_rewrites_config_and_arguments(self, popen):
        service = DriverService(_config(), http_client=_client())
        service.start()
        argv = popen.call_args[0][0]
        assert argv[-2:] == ["--webdriver-port", str(service.config.port)]
        assert service.config.port in reserved_ports()

    def test_explicit_port_is_kept(self, popen):
        service = DriverService(_config(port=4444), http_client=_client())
        handle = service.start()
        assert handle.port == 4444

    def test_spawn_failure(self, monkeypatch):
        monkeypatch.setattr(
            "driverbridge.service.lifecycle.subprocess.Popen",
            MagicMock(side_effect=FileNotFoundError(2, "No such file or directory")),
        )
        service = DriverService(_config(), http_client=_client())
        with pytest.raises(SpawnFailedError) as exc_info:
            service.start()
        assert service.state is ServiceState.FAULTED
        assert exc_info.value.download_url == "https://example.test/driver"
        assert "https://example.test/driver" in str(exc_info.value)

    def test_spawn_failure_releases_port(self, monkeypatch):
        monkeypatch.setattr(
            "driverbridge.service.lifecycle.subprocess.Popen",
            MagicMock(side_effect=PermissionError(13, "Permission denied")),
        )
        service = DriverService(_config(), http_client=_client())
        with pytest.raises(SpawnFailedError):
            service.start()
        assert service.config.port not in reserved_ports()

    def test_process_exit_during_startup_is_spawn_failure(self, monkeypatch):
        proc = _fake_process(alive=False)
        monkeypatch.setattr("driverbridge.service.lifecycle.subprocess.Popen", MagicMock(return_value=proc))
        service = DriverService(_config(), http_client=_client())
        with pytest.raises(SpawnFailedError, match="exited with code 1"):
            service.start()
        assert service.state is ServiceState.FAULTED
        proc.kill.assert_not_called()

    def test_timeout_when_never_listening(self, popen):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(refuse))
        service = DriverService(_config(), http_client=client)
        with pytest.raises(StartTimeoutError) as exc_info:
            service.start()
        assert service.state is ServiceState.FAULTED
        assert exc_info.value.download_url == "https://example.test/driver"
        popen.return_value.kill.assert_called_once()

    def test_timeout_when_reply_never_looks_ready(self, popen):
        service = DriverService(_config(), http_client=_client(500, "text/html"))
        with pytest.raises(StartTimeoutError):
            service.start()
        popen.return_value.kill.assert_called_once()

    def test_cannot_start_twice(self, popen):
        service = DriverService(_config(), http_client=_client())
        service.start()
        with pytest.raises(InvalidServiceStateError):
            service.start()

    def test_faulted_service_cannot_restart(self, popen):
        service = DriverService(_config(), http_client=_client(404))
        with pytest.raises(StartTimeoutError):
            service.start()
        with pytest.raises(InvalidServiceStateError):
            service.start()

    @pytest.mark.parametrize("binary", ["C:\\Nightly\\", '/opt/fire"fox/firefox'])
    def test_awkward_binary_path_reaches_driver_untouched(self, popen, binary):
        service = DriverService(_config(browser_binary_path=binary), http_client=_client())
        service.start()
        assert service.state is ServiceState.RUNNING
        assert popen.call_args[0][0][-2:] == ["--binary", binary]
        assert service.stop() is False

    def test_unexpected_setup_error_faults(self, monkeypatch, popen):
        monkeypatch.setattr(
            "driverbridge.service.lifecycle.find_free_port",
            MagicMock(side_effect=RuntimeError("allocator broke")),
        )
        service = DriverService(_config(), http_client=_client())
        with pytest.raises(RuntimeError, match="allocator broke"):
            service.start()
        assert service.state is ServiceState.FAULTED
        assert service.stop() is False
        popen.assert_not_called()

    def test_invalid_argument_is_spawn_failure(self, monkeypatch):
        monkeypatch.setattr(
            "driverbridge.service.lifecycle.subprocess.Popen",
            MagicMock(side_effect=ValueError("embedded null byte")),
        )
        service = DriverService(_config(), http_client=_client())
        with pytest.raises(SpawnFailedError, match="embedded null byte"):
            service.start()
        assert service.state is ServiceState.FAULTED
        assert service.config.port not in reserved_ports()


class TestStop:
    def test_stop_when_never_started(self):
        service = DriverService(_config())
        assert service.stop() is False
        assert service.state is ServiceState.STOPPED

    def test_stop_twice(self, popen):
        service = DriverService(_config(), http_client=_client())
        service.start()
        assert service.stop() is False
        assert service.state is ServiceState.STOPPED
        assert service.stop() is False
        assert service.state is ServiceState.STOPPED

    def test_graceful_exit_uses_terminate(self, popen):
        service = DriverService(_config(), http_client=_client())
        service.start()
        service.stop()
        proc = popen.return_value
        proc.terminate.assert_called_once()
        proc.kill.assert_not_called()

    def test_forced_kill_after_termination_timeout(self, popen):
        proc = popen.return_value
        proc.wait.side_effect = [subprocess.TimeoutExpired("wires", 0.1), 0]
        service = DriverService(_config(), http_client=_client())
        service.start()
        assert service.stop() is True
        proc.kill.assert_called_once()
        assert service.state is ServiceState.STOPPED

    def test_restart_after_stop_allocates_again(self, popen):
        service = DriverService(_config(), http_client=_client())
        service.start()
        service.stop()
        handle = service.start()
        assert service.state is ServiceState.RUNNING
        assert handle.port in reserved_ports()
        service.stop()

    def test_stop_releases_port(self, popen):
        service = DriverService(_config(), http_client=_client())
        handle = service.start()
        service.stop()
        assert handle.port not in reserved_ports()

    def test_shutdown_endpoint_used_when_configured(self, popen):
        seen: list[str] = []

        def handler(request):
            seen.append(f"{request.method} {request.url.path}")
            return httpx.Response(500, json={"status": 6})

        client = httpx.Client(transport=httpx.MockTransport(handler))
        service = DriverService(_config(has_shutdown_endpoint=True), http_client=client)
        service.start()
        service.stop()
        assert "GET /shutdown" in seen
        popen.return_value.terminate.assert_not_called()

    def test_failed_shutdown_request_still_stops(self, popen):
        def handler(request):
            if request.url.path == "/shutdown":
                raise httpx.ConnectError("gone", request=request)
            return httpx.Response(500, json={"status": 6})

        client = httpx.Client(transport=httpx.MockTransport(handler))
        service = DriverService(_config(has_shutdown_endpoint=True), http_client=client)
        service.start()
        assert service.stop() is False
        assert service.state is ServiceState.STOPPED

    def test_unkillable_process_still_reported_alive(self, popen):
        proc = popen.return_value
        proc.wait.side_effect = subprocess.TimeoutExpired("wires", 0.1)
        service = DriverService(_config(), http_client=_client())
        service.start()
        assert service.stop() is True
        assert service.state is ServiceState.STOPPED
        assert service.is_running
        assert service.pid == 4242

    def test_exited_process_not_running_after_stop(self, popen):
        proc = popen.return_value
        service = DriverService(_config(), http_client=_client())
        service.start()
        proc.poll.return_value = 0
        service.stop()
        assert not service.is_running

    def test_shutdown_request_bounded_by_termination_timeout(self, popen):
        timeouts: list[dict] = []

        def handler(request):
            if request.url.path == "/shutdown":
                timeouts.append(request.extensions["timeout"])
                raise httpx.ReadTimeout("hung", request=request)
            return httpx.Response(500, json={"status": 6})

        client = httpx.Client(transport=httpx.MockTransport(handler))
        service = DriverService(_config(has_shutdown_endpoint=True, probe_timeout=5.0), http_client=client)
        service.start()
        service.stop()
        assert len(timeouts) == 1
        assert all(t is not None and t <= 0.1 for t in timeouts[0].values())

    def test_stop_after_fault_is_noop(self, popen):
        service = DriverService(_config(), http_client=_client(404))
        with pytest.raises(StartTimeoutError):
            service.start()
        assert service.stop() is False
        assert service.state is ServiceState.FAULTED


class TestContextManager:
    def test_starts_and_stops(self, popen):
        service = DriverService(_config(), http_client=_client())
        with service as handle:
            assert service.state is ServiceState.RUNNING
            assert handle.base_url.startswith("http://127.0.0.1:")
        assert service.state is ServiceState.STOPPED
