"""Tasmota command encoding and power-state extraction.

Tasmota's HTTP API takes a console command in the ``cmnd`` query parameter:

    http://<host>/cm?user=<user>&password=<password>&cmnd=Power1%20ON

The firmware treats ``Power`` (unnumbered) and ``Power1``, ``Power2``... as different
commands, so the relay suffix is only appended when one is configured.
"""

from typing import Any, Optional, Union
from urllib.parse import urlencode

from tasmota_switch.errors import AmbiguousAcknowledgementError

ON = "ON"
OFF = "OFF"


def normalize_relay(relay: Union[str, int, None]) -> str:
    """Return the relay index as a string, ``""`` for the default relay."""
    if relay is None:
        return ""
    value = str(relay).strip()
    if value and not value.isdigit():
        raise ValueError(f"Relay index must be numeric, got {relay!r}")
    return value


def power_token(desired: bool) -> str:
    return ON if desired else OFF


def build_read_command(relay: Union[str, int, None] = "") -> str:
    """Build the read command: ``Power`` or ``Power{N}``."""
    return f"Power{normalize_relay(relay)}"


def build_write_command(relay: Union[str, int, None], desired: bool) -> str:
    """Build the write command, e.g. ``Power ON`` or ``Power2 OFF``."""
    return f"{build_read_command(relay)} {power_token(desired)}"


def build_query(command: str, username: str = "", password: str = "") -> str:
    """URL-encode credentials and command into a query string.

    Credentials are omitted when empty; ``cmnd`` is always present.
    """
    params = []
    if username:
        params.append(("user", username))
    if password:
        params.append(("password", password))
    params.append(("cmnd", command))
    return urlencode(params)


def build_url(hostname: str, command: str, username: str = "", password: str = "") -> str:
    """Build the full device URL for a command."""
    return f"http://{hostname}/cm?{build_query(command, username, password)}"


def power_keys(relay: Union[str, int, None]) -> list[str]:
    """Response keys to inspect, numbered key first when a relay is configured."""
    relay = normalize_relay(relay)
    if relay:
        return [f"POWER{relay}", "POWER"]
    return ["POWER"]


def extract_power_state(payload: dict[str, Any], relay: Union[str, int, None]) -> Optional[bool]:
    """Extract the power state from a device response.

    Returns:
        True/False for ON/OFF, or None if no usable key was found
    """
    for key in power_keys(relay):
        if key in payload:
            value = str(payload[key]).upper()
            if value == ON:
                return True
            if value == OFF:
                return False
            return None
    return None


def check_acknowledgement(payload: dict[str, Any], relay: Union[str, int, None], desired: bool) -> None:
    """Verify a write response echoes the desired value.

    Some firmwares answer ``{"POWER": "ON"}`` even when addressed as ``Power1``,
    so the bare key is accepted as well.

    Raises:
        AmbiguousAcknowledgementError: If neither key carries the desired value
    """
    token = power_token(desired)
    for key in power_keys(relay):
        value = payload.get(key)
        if isinstance(value, str) and value.upper() == token:
            return
    raise AmbiguousAcknowledgementError(token, payload)
