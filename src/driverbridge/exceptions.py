"""driverbridge exception hierarchy."""

from __future__ import annotations


class DriverBridgeError(Exception):
    """Base exception for all driverbridge errors."""


# ---------------------------------------------------------------------------
# Service lifecycle
# ---------------------------------------------------------------------------


class ServiceError(DriverBridgeError):
    """Raised when a driver service cannot be started or managed."""


class SpawnFailedError(ServiceError):
    """Raised when the driver executable could not be run or exited during startup.

    Attributes:
        executable: Full path of the executable that was launched.
        download_url: Where the driver can be obtained, for remediation hints.
    """

    def __init__(self, executable: str, download_url: str, reason: str) -> None:
        self.executable = executable
        self.download_url = download_url
        self.reason = reason
        super().__init__(
            f"Cannot start the driver service using {executable}: {reason}. "
            f"The driver executable can be downloaded at {download_url}"
        )


class StartTimeoutError(ServiceError):
    """Raised when the driver process never answered the readiness probe in time.

    Attributes:
        service_url: Base URL that was being probed.
        timeout: The initialization timeout in seconds.
        download_url: Where the driver can be obtained, for remediation hints.
    """

    def __init__(self, service_url: str, timeout: float, download_url: str) -> None:
        self.service_url = service_url
        self.timeout = timeout
        self.download_url = download_url
        super().__init__(
            f"Cannot start the driver service on {service_url}: not responding after {timeout:.2f}s. "
            f"Check that a compatible driver from {download_url} is installed"
        )


class InvalidServiceStateError(ServiceError):
    """Raised when a lifecycle operation is attempted from the wrong state."""

    def __init__(self, operation: str, state: str) -> None:
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} a driver service in state {state}")


class DriverExecutableNotFoundError(ServiceError):
    """Raised when the driver executable cannot be located on disk or ``PATH``."""

    def __init__(self, file_name: str, download_url: str) -> None:
        self.file_name = file_name
        self.download_url = download_url
        super().__init__(
            f"The {file_name} file does not exist in the current directory or in a directory on the "
            f"PATH environment variable. The driver can be downloaded at {download_url}"
        )


# ---------------------------------------------------------------------------
# Response decoding
# ---------------------------------------------------------------------------


class ResponseError(DriverBridgeError):
    """Raised when a driver response body cannot be decoded."""


class UnknownErrorCodeError(ResponseError):
    """Raised when a spec-compliant response names an error outside the known table."""

    def __init__(self, error_name: str) -> None:
        self.error_name = error_name
        super().__init__(f"The specified error {error_name!r} is not a valid error")
