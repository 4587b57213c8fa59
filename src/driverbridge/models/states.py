"""Driver service state machine definitions."""

from enum import Enum


class ServiceState(str, Enum):
    """Lifecycle states of one driver process bound to one port."""

    STOPPED = "STOPPED"
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    FAULTED = "FAULTED"


# FAULTED is terminal: a faulted service is discarded, never restarted.
STATE_TRANSITIONS: dict[ServiceState, list[ServiceState]] = {
    ServiceState.STOPPED: [ServiceState.STARTING],
    ServiceState.STARTING: [ServiceState.RUNNING, ServiceState.FAULTED],
    ServiceState.RUNNING: [ServiceState.STOPPING],
    ServiceState.STOPPING: [ServiceState.STOPPED],
    ServiceState.FAULTED: [],
}


def can_transition(current: ServiceState, target: ServiceState) -> bool:
    """Return True if *target* is a valid next state from *current*."""
    return target in STATE_TRANSITIONS.get(current, [])
