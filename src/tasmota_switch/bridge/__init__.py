"""Accessory shell: polling and lifecycle around a switch."""

from tasmota_switch.bridge.accessory import SwitchAccessory
from tasmota_switch.bridge.poller import PollScheduler

__all__ = ["SwitchAccessory", "PollScheduler"]
