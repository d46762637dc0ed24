"""MCP server for controlling a Tasmota relay switch."""

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from tasmota_switch.bridge import SwitchAccessory
from tasmota_switch.config import load_config
from tasmota_switch.errors import TasmotaError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize FastMCP server
app = FastMCP("Tasmota Switch Control")

ENV_FILE = Path.home() / ".tasmota" / ".env"

# Lazily initialized accessory instance
accessory: Optional[SwitchAccessory] = None


async def get_accessory() -> SwitchAccessory:
    """Get or start the accessory.

    Loads credentials from ~/.tasmota/.env (if present) before reading the config,
    so TASMOTA_* variables there take effect.
    """
    global accessory
    if accessory is not None:
        return accessory

    if ENV_FILE.exists():
        load_dotenv(ENV_FILE)

    accessory = SwitchAccessory(load_config())
    await accessory.start()
    logger.info("Accessory started for %s", accessory.info.serial_number)
    return accessory


def _state_text(is_on: bool) -> str:
    return "ON" if is_on else "OFF"


async def _set(desired: bool) -> str:
    a = await get_accessory()
    try:
        await a.switch.set_state(desired)
    except TasmotaError as e:
        return f"✗ Failed to turn {_state_text(desired).lower()} {a.info.name}: {e}"
    return f"✓ {a.info.name} turned {_state_text(desired).lower()}. Current state: {_state_text(a.get_cached_state())}"


@app.tool()
async def turn_on() -> str:
    """Turn on the Tasmota switch.

    Returns:
        A message confirming the switch was turned on
    """
    logger.info("Tool called: turn_on")
    return await _set(True)


@app.tool()
async def turn_off() -> str:
    """Turn off the Tasmota switch.

    Returns:
        A message confirming the switch was turned off
    """
    logger.info("Tool called: turn_off")
    return await _set(False)


@app.tool()
async def get_status() -> str:
    """Get the current status of the Tasmota switch.

    Reads the device first; if it can't be reached the last known state is shown.

    Returns:
        Current on/off state and accessory details
    """
    logger.info("Tool called: get_status")
    a = await get_accessory()
    reported = await a.switch.refresh()
    info = a.info

    state_emoji = "🟢" if a.get_cached_state() else "⚫"
    source = "device" if reported is not None else "cached"

    return (
        f"{state_emoji} {info.name} is {_state_text(a.get_cached_state())}\n"
        f"Source: {source}\n"
        f"Model: {info.manufacturer} {info.model}\n"
        f"Serial: {info.serial_number}\n"
        f"Polling every: {a.config.poll_interval}s"
    )


@app.tool()
async def identify() -> str:
    """Ask the accessory to identify itself.

    Returns:
        A confirmation message
    """
    logger.info("Tool called: identify")
    a = await get_accessory()
    a.identify()
    return f"✓ Identify requested for {a.info.name}"


async def shutdown() -> None:
    """Stop the accessory started by the tools, if any."""
    global accessory
    if accessory is not None:
        await accessory.stop()
        accessory = None


if __name__ == "__main__":
    app.run()
