"""Enumerations shared by the service lifecycle and the response decoder."""

from driverbridge.models.states import ServiceState
from driverbridge.models.status import StatusCode, status_from_error

__all__ = ["ServiceState", "StatusCode", "status_from_error"]
