"""Shared fixtures for Tasmota switch tests."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))
from mocks.mock_tasmota_device import MockTasmotaDevice

from tasmota_switch.config import AccessoryConfig
from tasmota_switch.devices import TasmotaSwitch


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep TASMOTA_* variables from the developer's shell out of tests."""
    for var in (
        "TASMOTA_CONFIG_PATH",
        "TASMOTA_HOSTNAME",
        "TASMOTA_RELAY",
        "TASMOTA_USERNAME",
        "TASMOTA_PASSWORD",
        "TASMOTA_POLL_INTERVAL",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config():
    """Single-relay accessory config."""
    return AccessoryConfig(name="Desk Lamp", hostname="device1")


@pytest.fixture
def device():
    """Simulated Tasmota device, all relays off."""
    return MockTasmotaDevice()


@pytest.fixture
def notifications():
    """List collecting state-change notifications."""
    return []


@pytest.fixture
def switch(config, device, notifications):
    """TasmotaSwitch wired to the simulated device with no retry delay."""
    return TasmotaSwitch(
        config, device, on_state_changed=notifications.append, retry_delay=0
    )
