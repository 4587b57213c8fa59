"""Legacy WebDriver status codes and the error-name lookup table.

The legacy wire dialect reports an integer ``status`` on every response.
The spec-compliant dialect omits it and names failures with an ``error``
string instead; ``status_from_error`` folds those names back onto the
legacy codes so callers only ever deal with one representation.
"""

from __future__ import annotations

from enum import IntEnum

from driverbridge.exceptions import UnknownErrorCodeError


class StatusCode(IntEnum):
    """Integer status codes of the legacy JSON wire protocol."""

    SUCCESS = 0
    NO_SUCH_DRIVER = 6
    NO_SUCH_ELEMENT = 7
    NO_SUCH_FRAME = 8
    UNKNOWN_COMMAND = 9
    OBSOLETE_ELEMENT = 10
    ELEMENT_NOT_DISPLAYED = 11
    INVALID_ELEMENT_STATE = 12
    UNHANDLED_ERROR = 13
    EXPECTED_ERROR = 14
    ELEMENT_NOT_SELECTABLE = 15
    NO_SUCH_DOCUMENT = 16
    UNEXPECTED_JAVASCRIPT_ERROR = 17
    NO_SCRIPT_RESULT = 18
    XPATH_LOOKUP_ERROR = 19
    NO_SUCH_COLLECTION = 20
    TIMEOUT = 21
    NULL_POINTER = 22
    NO_SUCH_WINDOW = 23
    INVALID_COOKIE_DOMAIN = 24
    UNABLE_TO_SET_COOKIE = 25
    UNEXPECTED_ALERT_OPEN = 26
    NO_ALERT_PRESENT = 27
    ASYNC_SCRIPT_TIMEOUT = 28
    INVALID_ELEMENT_COORDINATES = 29
    INVALID_SELECTOR = 32
    SESSION_NOT_CREATED = 33
    MOVE_TARGET_OUT_OF_BOUNDS = 34
    INVALID_XPATH_SELECTOR = 51
    INVALID_XPATH_SELECTOR_RETURN_TYPE = 52
    METHOD_NOT_ALLOWED = 405


# Spec-compliant error names -> legacy status codes. Closed set: anything
# else is rejected rather than defaulted.
ERROR_STATUS_MAP: dict[str, StatusCode] = {
    "element not selectable": StatusCode.ELEMENT_NOT_SELECTABLE,
    "element not visible": StatusCode.ELEMENT_NOT_DISPLAYED,
    "invalid argument": StatusCode.UNHANDLED_ERROR,
    "invalid cookie domain": StatusCode.INVALID_COOKIE_DOMAIN,
    "invalid element coordinates": StatusCode.INVALID_ELEMENT_COORDINATES,
    "invalid element state": StatusCode.INVALID_ELEMENT_STATE,
    "invalid selector": StatusCode.INVALID_SELECTOR,
    "invalid session id": StatusCode.NO_SUCH_DRIVER,
    "javascript error": StatusCode.UNEXPECTED_JAVASCRIPT_ERROR,
    "move target out of bounds": StatusCode.MOVE_TARGET_OUT_OF_BOUNDS,
    "no such alert": StatusCode.NO_ALERT_PRESENT,
    "no such element": StatusCode.NO_SUCH_ELEMENT,
    "no such frame": StatusCode.NO_SUCH_FRAME,
    "no such window": StatusCode.NO_SUCH_WINDOW,
    "script timeout": StatusCode.ASYNC_SCRIPT_TIMEOUT,
    "session not created": StatusCode.SESSION_NOT_CREATED,
    "stale element reference": StatusCode.OBSOLETE_ELEMENT,
    "timeout": StatusCode.TIMEOUT,
    "unable to set cookie": StatusCode.UNABLE_TO_SET_COOKIE,
    "unexpected alert open": StatusCode.UNEXPECTED_ALERT_OPEN,
    "unknown error": StatusCode.UNHANDLED_ERROR,
    "unknown command": StatusCode.UNKNOWN_COMMAND,
    "unknown method": StatusCode.UNKNOWN_COMMAND,
    "unsupported operation": StatusCode.UNHANDLED_ERROR,
}


def status_from_error(error_name: str) -> StatusCode:
    """Map a spec-compliant ``error`` string to its legacy status code.

    Raises:
        UnknownErrorCodeError: If *error_name* is not in ``ERROR_STATUS_MAP``.
    """
    try:
        return ERROR_STATUS_MAP[error_name]
    except KeyError:
        raise UnknownErrorCodeError(error_name) from None
