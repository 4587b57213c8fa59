"""Dialect-aware decoding of driver response bodies.

A driver answers in one of two JSON shapes:

* **legacy** — every body carries an integer ``status`` next to ``value``
  and ``sessionId``.
* **spec-compliant** — no ``status``; failures are named by an ``error``
  string, and a new-session reply nests its payload under ``capabilities``.

``decode_response`` folds both into one ``Response`` and records which
dialect produced it in ``Response.is_spec_compliant``.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import InitVar, dataclass, field
from typing import Any

from driverbridge.exceptions import ResponseError
from driverbridge.models.status import StatusCode, status_from_error

logger = logging.getLogger(__name__)


@dataclass
class Response:
    """Normalized result of one driver HTTP response.

    ``value``, ``session_id`` and ``status`` may be reassigned after
    construction; ``is_spec_compliant`` is fixed when the response is built.
    """

    value: Any = None
    session_id: str | None = None
    status: StatusCode | int = StatusCode.SUCCESS
    spec_compliant: InitVar[bool] = False
    _is_spec_compliant: bool = field(init=False, repr=False, compare=False, default=False)

    def __post_init__(self, spec_compliant: bool) -> None:
        self._is_spec_compliant = bool(spec_compliant)

    @property
    def is_spec_compliant(self) -> bool:
        """True if the body had no ``status`` field (spec-compliant dialect)."""
        return self._is_spec_compliant

    # ------------------------------------------------------------------
    # Wire form
    # ------------------------------------------------------------------

    @classmethod
    def from_json(cls, text: str | bytes) -> "Response":
        """Parse a JSON response body and decode it.

        Raises:
            ResponseError: If the body is not valid JSON or not a JSON object.
        """
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ResponseError(f"Response body is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise ResponseError(f"Response body must be a JSON object, got {type(raw).__name__}")
        return decode_response(raw)

    def to_dict(self) -> dict[str, Any]:
        """Return the legacy wire form: ``value``, ``sessionId`` and an integer ``status``."""
        return {
            "value": self.value,
            "sessionId": self.session_id,
            "status": int(self.status),
        }

    def to_json(self) -> str:
        """Serialize to a JSON string (see ``to_dict``)."""
        return json.dumps(self.to_dict())

    def __str__(self) -> str:
        status = self.status.name if isinstance(self.status, StatusCode) else str(self.status)
        return f"({self.session_id} {status}: {self.value})"


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------


def decode_response(raw: Mapping[str, Any]) -> Response:
    """Decode a parsed JSON response body into a ``Response``.

    Rules, in order:

    1. A non-null ``sessionId`` is kept as its canonical string form.
    2. ``value`` is copied verbatim when present.
    3. A ``status`` key marks the legacy dialect; it is coerced to an
       integer and nothing else is inferred (a missing ``value`` stays
       ``None``).
    4. Otherwise the body is spec-compliant. A missing ``value`` falls back
       to ``capabilities`` (new-session replies) or to the whole body, and
       an ``error`` name is mapped through the status table.

    Raises:
        UnknownErrorCodeError: If a spec-compliant ``error`` is not a known name.
        ResponseError: If a legacy ``status`` cannot be read as an integer.
    """
    session_id = _session_id_string(raw.get("sessionId"))

    has_value = "value" in raw
    value = raw["value"] if has_value else None

    if "status" in raw:
        return Response(
            value=value,
            session_id=session_id,
            status=_coerce_status(raw["status"]),
            spec_compliant=False,
        )

    if not has_value and value is None:
        # New-session replies carry their payload under "capabilities".
        value = raw["capabilities"] if "capabilities" in raw else dict(raw)

    status: StatusCode | int = StatusCode.SUCCESS
    if "error" in raw:
        status = status_from_error(str(raw["error"]))

    return Response(value=value, session_id=session_id, status=status, spec_compliant=True)


def _session_id_string(raw: Any) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw
    # bools and numbers render the way they appear on the wire
    return json.dumps(raw)


def _coerce_status(raw: Any) -> StatusCode | int:
    """Coerce a legacy ``status`` field to ``StatusCode`` (or a bare int if unlisted).

    Floats round half to even; booleans are not statuses.
    """
    if isinstance(raw, bool):
        raise ResponseError(f"Legacy status {raw!r} is not an integer")
    if isinstance(raw, float):
        if not math.isfinite(raw):
            raise ResponseError(f"Legacy status {raw!r} is not an integer")
        raw = round(raw)
    try:
        code = int(raw)
    except (TypeError, ValueError) as e:
        raise ResponseError(f"Legacy status {raw!r} is not an integer") from e
    try:
        return StatusCode(code)
    except ValueError:
        logger.debug("Legacy status %d has no StatusCode member; keeping raw value", code)
        return code
