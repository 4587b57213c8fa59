"""Free TCP port allocation for driver services."""

from __future__ import annotations

import logging
import socket
import threading

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS = 20

_reserved: set[int] = set()
_lock = threading.Lock()


def find_free_port(host: str = "127.0.0.1") -> int:
    """Return a free ephemeral port and reserve it for this process.

    The port is free when the probe socket closes; another process may still
    grab it before the driver binds. Ports handed out here are not handed out
    again until ``release_port`` is called.
    """
    for _ in range(_MAX_ATTEMPTS):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind((host, 0))
            port = s.getsockname()[1]
        with _lock:
            if port not in _reserved:
                _reserved.add(port)
                logger.debug("Reserved port %d", port)
                return port
    raise OSError(f"No unreserved free port found after {_MAX_ATTEMPTS} attempts")


def release_port(port: int) -> None:
    """Return *port* to the pool; unknown ports are ignored."""
    with _lock:
        _reserved.discard(port)


def reserved_ports() -> frozenset[int]:
    """Snapshot of ports currently held by live services."""
    with _lock:
        return frozenset(_reserved)
