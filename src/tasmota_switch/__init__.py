"""Tasmota HTTP switch accessory core."""

from tasmota_switch.errors import (
    AmbiguousAcknowledgementError,
    TasmotaError,
    TransportError,
    UnexpectedResponseError,
)

__all__ = [
    "AmbiguousAcknowledgementError",
    "TasmotaError",
    "TransportError",
    "UnexpectedResponseError",
]
