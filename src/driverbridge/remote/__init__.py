"""Wire-level helpers for talking to a running driver service."""

from driverbridge.remote.response import Response, decode_response

__all__ = ["Response", "decode_response"]
