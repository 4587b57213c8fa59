"""Readiness probe for a freshly spawned driver service.

There is no health endpoint shared by both wire dialects, so the probe
deletes a session that cannot exist. A legacy driver answers that with
HTTP 500 and a JSON body; a spec-compliant one may answer 200 with an
error body. Either reply means the server is listening and speaking
WebDriver. Connection-level failures mean "not listening yet".
"""

from __future__ import annotations

import logging
from enum import Enum

import httpx

logger = logging.getLogger(__name__)

PROBE_SESSION_ID = "FakeSessionIdForPollingPurposes"
PROBE_PATH = f"session/{PROBE_SESSION_ID}"
JSON_CONTENT_TYPE = "application/json"


class ProbeResult(str, Enum):
    """Classification of one readiness probe attempt."""

    READY = "READY"
    NOT_LISTENING = "NOT_LISTENING"
    UNEXPECTED_REPLY = "UNEXPECTED_REPLY"


def classify_reply(status_code: int, content_type: str | None) -> ProbeResult:
    """Classify an HTTP reply to the probe request.

    READY requires a JSON content type and either a success status or the
    500 the legacy dialect uses for an unknown session.
    """
    if not (content_type or "").lower().startswith(JSON_CONTENT_TYPE):
        return ProbeResult.UNEXPECTED_REPLY
    if 200 <= status_code < 300:
        return ProbeResult.READY
    if status_code == 500:
        return ProbeResult.READY
    return ProbeResult.UNEXPECTED_REPLY


def probe(client: httpx.Client, service_url: str, timeout: float) -> ProbeResult:
    """Send one probe request to *service_url* and classify the outcome."""
    url = service_url.rstrip("/") + "/" + PROBE_PATH
    try:
        resp = client.delete(url, headers={"Connection": "close"}, timeout=timeout)
    except httpx.TransportError as e:
        logger.debug("Probe %s: %s", url, type(e).__name__)
        return ProbeResult.NOT_LISTENING
    result = classify_reply(resp.status_code, resp.headers.get("content-type"))
    logger.debug("Probe %s: HTTP %d -> %s", url, resp.status_code, result.value)
    return result
