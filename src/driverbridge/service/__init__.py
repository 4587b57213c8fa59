"""Local driver service management.

``DriverService`` spawns a driver executable on a free port, waits for it
to answer a readiness probe, and tears it down again. ``ServiceConfig``
holds the launch parameters; ``create_default_service`` builds both from
settings.
"""

from driverbridge.service.config import ServiceConfig
from driverbridge.service.discovery import create_default_service, find_driver_executable
from driverbridge.service.lifecycle import DriverService, ServiceHandle

__all__ = [
    "DriverService",
    "ServiceConfig",
    "ServiceHandle",
    "create_default_service",
    "find_driver_executable",
]
