"""Configuration loader for Tasmota switch accessories."""

import json
import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from tasmota_switch.transport.commands import normalize_relay

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.tasmota/config.json"
DEFAULT_NAME = "Tasmota Switch"
DEFAULT_HOSTNAME = "sonoff"
DEFAULT_POLL_SECONDS = 60
MIN_POLL_SECONDS = 5

MANUFACTURER = "Tasmota"
MODEL = "HTTP Switch"


def normalize_poll_interval(
    value: Any,
    minimum: float = MIN_POLL_SECONDS,
    default: float = DEFAULT_POLL_SECONDS,
) -> Union[int, float]:
    """Coerce a configured poll interval, falling back to ``default``.

    Missing, non-numeric, and below-``minimum`` values all yield ``default``.
    """
    if value is None or value == "":
        return default
    try:
        poll = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid poll interval {value!r}, using {default}s")
        return default
    if math.isnan(poll) or math.isinf(poll) or poll < minimum:
        logger.warning(f"Poll interval {value!r} below minimum {minimum}s, using {default}s")
        return default
    return int(poll) if poll.is_integer() else poll


@dataclass(frozen=True)
class AccessoryInfo:
    """Static metadata a host shows for the accessory."""

    name: str
    manufacturer: str
    model: str
    serial_number: str


@dataclass(frozen=True)
class AccessoryConfig:
    """Settings for a single Tasmota relay accessory."""

    name: str = DEFAULT_NAME
    hostname: str = DEFAULT_HOSTNAME
    relay: str = ""
    username: str = ""
    password: str = ""
    poll_interval: Union[int, float] = DEFAULT_POLL_SECONDS

    def __post_init__(self) -> None:
        object.__setattr__(self, "relay", normalize_relay(self.relay))
        object.__setattr__(self, "poll_interval", normalize_poll_interval(self.poll_interval))
        if not self.hostname:
            raise ValueError("hostname must not be empty")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccessoryConfig":
        """Build a config from host plugin options.

        Recognized keys: name, hostname, relay, username (or user), password,
        pollInterval (poll_interval is accepted too).
        """
        poll = data.get("pollInterval", data.get("poll_interval"))
        return cls(
            name=data.get("name") or DEFAULT_NAME,
            hostname=data.get("hostname") or DEFAULT_HOSTNAME,
            relay=data.get("relay") or "",
            username=data.get("username") or data.get("user") or "",
            password=data.get("password") or "",
            poll_interval=poll,
        )

    @property
    def serial_number(self) -> str:
        return f"{self.hostname}#{self.relay}" if self.relay else self.hostname

    @property
    def info(self) -> AccessoryInfo:
        return AccessoryInfo(
            name=self.name,
            manufacturer=MANUFACTURER,
            model=MODEL,
            serial_number=self.serial_number,
        )


def load_config(config_path: Optional[str] = None) -> AccessoryConfig:
    """Load accessory configuration from file with environment variable overrides.

    Environment variables:
        TASMOTA_CONFIG_PATH: Override config file location
        TASMOTA_HOSTNAME: Override device hostname/IP
        TASMOTA_RELAY: Override relay index
        TASMOTA_USERNAME: Override web UI username
        TASMOTA_PASSWORD: Override web UI password
        TASMOTA_POLL_INTERVAL: Override poll interval in seconds

    Args:
        config_path: Path to config JSON file. Defaults to ~/.tasmota/config.json

    Returns:
        AccessoryConfig

    Raises:
        FileNotFoundError: If the file is missing and TASMOTA_HOSTNAME isn't set
        ValueError: If the file holds invalid values
    """
    path_str = config_path or os.environ.get("TASMOTA_CONFIG_PATH", DEFAULT_CONFIG_PATH)
    config_file = Path(path_str).expanduser()

    if config_file.exists():
        with open(config_file) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Config at {config_file} must be a JSON object")
    elif os.environ.get("TASMOTA_HOSTNAME"):
        data = {}
    else:
        raise FileNotFoundError(
            f"Tasmota config not found at {config_file}. "
            f"Create it or set TASMOTA_HOSTNAME."
        )

    overrides = {
        "hostname": "TASMOTA_HOSTNAME",
        "relay": "TASMOTA_RELAY",
        "username": "TASMOTA_USERNAME",
        "password": "TASMOTA_PASSWORD",
        "pollInterval": "TASMOTA_POLL_INTERVAL",
    }
    for key, env_var in overrides.items():
        if env_var in os.environ:
            data[key] = os.environ[env_var]

    config = AccessoryConfig.from_dict(data)
    logger.info(
        f"Loaded config: name={config.name}, hostname={config.hostname}, "
        f"relay={config.relay or '-'}, poll={config.poll_interval}s"
    )
    return config
