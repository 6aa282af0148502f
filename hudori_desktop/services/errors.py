"""Typed failures raised by the request gateway and the envelope decoder.

Each class carries the ``status`` the backend service reports to the host
when it turns the exception into a result map.
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for every caller-visible bridge failure."""

    status: int = 500


class DecodeError(GatewayError):
    """The inbound request envelope could not be decoded."""

    status = 400


class InvalidPayload(GatewayError):
    """The request is structurally invalid (unknown method, duplicate keys)."""

    status = 400


class EncodingFailed(GatewayError):
    """The outgoing payload could not be serialized."""

    status = 400


class TransportFailed(GatewayError):
    """The backend could not be reached."""

    status = 500

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"error sending request: {cause}")
        self.cause = cause
