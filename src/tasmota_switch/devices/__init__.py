"""Switch device implementations."""

from .base import BaseSwitch
from .tasmota_switch import TasmotaSwitch

__all__ = ["BaseSwitch", "TasmotaSwitch"]
