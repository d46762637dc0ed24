"""Error types raised by the Tasmota switch core."""

from typing import Optional


class TasmotaError(Exception):
    """Base class for all errors talking to a Tasmota device."""


class TransportError(TasmotaError):
    """Network failure, timeout, or non-2xx HTTP status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class UnexpectedResponseError(TasmotaError):
    """Response body was neither a JSON object nor plain ON/OFF text."""

    def __init__(self, body: str):
        super().__init__(f"Unexpected response: {body}")
        self.body = body


class AmbiguousAcknowledgementError(TasmotaError):
    """A power command returned 2xx but did not echo the requested value.

    Only ever logged; the command is still treated as successful.
    """

    def __init__(self, desired: str, payload: dict):
        super().__init__(f"Command sent, response ambiguous (wanted {desired}): {payload}")
        self.desired = desired
        self.payload = payload
