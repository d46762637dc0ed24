"""HTTP transport, command encoding and retry policy."""

from tasmota_switch.transport.client import TasmotaHttpClient, parse_power_response
from tasmota_switch.transport.commands import (
    build_read_command,
    build_url,
    build_write_command,
    extract_power_state,
)
from tasmota_switch.transport.retry import with_retry

__all__ = [
    "TasmotaHttpClient",
    "parse_power_response",
    "build_read_command",
    "build_write_command",
    "build_url",
    "extract_power_state",
    "with_retry",
]
