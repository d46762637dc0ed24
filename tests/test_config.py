"""Tests for accessory configuration."""

import json
from dataclasses import FrozenInstanceError

import pytest

from tasmota_switch.config import (
    DEFAULT_POLL_SECONDS,
    AccessoryConfig,
    load_config,
    normalize_poll_interval,
)


class TestAccessoryConfig:
    """Tests for AccessoryConfig construction."""

    def test_defaults(self):
        config = AccessoryConfig.from_dict({})

        assert config.name == "Tasmota Switch"
        assert config.hostname == "sonoff"
        assert config.relay == ""
        assert config.username == ""
        assert config.password == ""
        assert config.poll_interval == 60

    def test_host_option_names(self):
        config = AccessoryConfig.from_dict(
            {
                "name": "Heater",
                "hostname": "device1",
                "relay": 2,
                "user": "admin",
                "password": "pw",
                "pollInterval": 10,
            }
        )

        assert config.relay == "2"
        assert config.username == "admin"
        assert config.poll_interval == 10

    def test_username_preferred_over_user(self):
        config = AccessoryConfig.from_dict({"username": "a", "user": "b"})
        assert config.username == "a"

    @pytest.mark.parametrize("value", [1, 4.9, "abc", -10, float("nan"), True])
    def test_invalid_poll_interval_uses_default(self, value):
        assert AccessoryConfig(poll_interval=value).poll_interval == DEFAULT_POLL_SECONDS

    def test_poll_interval_at_floor(self):
        assert AccessoryConfig(poll_interval="5").poll_interval == 5

    def test_invalid_relay_rejected(self):
        with pytest.raises(ValueError):
            AccessoryConfig(relay="first")

    def test_empty_hostname_rejected(self):
        with pytest.raises(ValueError):
            AccessoryConfig(hostname="")

    def test_immutable(self):
        config = AccessoryConfig()
        with pytest.raises(FrozenInstanceError):
            config.hostname = "other"

    def test_serial_number(self):
        assert AccessoryConfig(hostname="device1").serial_number == "device1"
        assert AccessoryConfig(hostname="device1", relay="2").serial_number == "device1#2"

    def test_info(self):
        info = AccessoryConfig(name="Porch", hostname="device1", relay="1").info

        assert info.name == "Porch"
        assert info.manufacturer == "Tasmota"
        assert info.model == "HTTP Switch"
        assert info.serial_number == "device1#1"


class TestNormalizePollInterval:
    """Tests for poll interval coercion."""

    def test_missing_uses_default(self):
        assert normalize_poll_interval(None) == DEFAULT_POLL_SECONDS

    def test_custom_floor(self):
        assert normalize_poll_interval(0.5, minimum=0.1) == 0.5


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"name": "Fan", "hostname": "10.0.0.7", "relay": "1"}))

        config = load_config(str(path))

        assert config.name == "Fan"
        assert config.hostname == "10.0.0.7"
        assert config.relay == "1"

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"hostname": "10.0.0.7", "password": "old"}))
        monkeypatch.setenv("TASMOTA_HOSTNAME", "10.0.0.8")
        monkeypatch.setenv("TASMOTA_PASSWORD", "new")
        monkeypatch.setenv("TASMOTA_POLL_INTERVAL", "30")

        config = load_config(str(path))

        assert config.hostname == "10.0.0.8"
        assert config.password == "new"
        assert config.poll_interval == 30

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "other.json"
        path.write_text(json.dumps({"hostname": "plug"}))
        monkeypatch.setenv("TASMOTA_CONFIG_PATH", str(path))

        assert load_config().hostname == "plug"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.json"))

    def test_missing_file_with_env_hostname(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TASMOTA_HOSTNAME", "plug")
        monkeypatch.setenv("TASMOTA_RELAY", "3")

        config = load_config(str(tmp_path / "missing.json"))

        assert config.hostname == "plug"
        assert config.relay == "3"

    def test_non_object_file_rejected(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")

        with pytest.raises(ValueError):
            load_config(str(path))
