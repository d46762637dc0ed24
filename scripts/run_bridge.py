"""Entry point to run a Tasmota switch accessory.

Usage:
    uv run python scripts/run_bridge.py                    # ~/.tasmota/config.json
    uv run python scripts/run_bridge.py --config sw.json   # explicit config file
    uv run python scripts/run_bridge.py --hostname 192.168.1.50 --relay 2

The accessory polls the device and logs every state change:
    GET http://{hostname}/cm?cmnd=Power{relay}

Stops cleanly on Ctrl+C / SIGTERM.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from tasmota_switch.bridge import SwitchAccessory
from tasmota_switch.config import load_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ENV_FILE = Path.home() / ".tasmota" / ".env"


async def main(args: argparse.Namespace) -> int:
    """Main entry point."""
    # Credentials and overrides from ~/.tasmota/.env
    if ENV_FILE.exists():
        load_dotenv(ENV_FILE)

    if args.hostname:
        os.environ["TASMOTA_HOSTNAME"] = args.hostname
    if args.relay:
        os.environ["TASMOTA_RELAY"] = args.relay

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    def on_state_changed(is_on: bool) -> None:
        logger.info(f"{config.name} is now {'ON' if is_on else 'OFF'}")

    accessory = SwitchAccessory(config, on_state_changed=on_state_changed)

    logger.info(f"Starting accessory {config.name} ({config.info.serial_number})...")
    await accessory.start()
    accessory.install_cleanup_handlers()

    logger.info(f"Polling {config.hostname} every {accessory.poller.interval}s")
    logger.info("Press Ctrl+C to stop")

    # Wait for shutdown signal
    await accessory.wait_closed()
    logger.info("Accessory stopped")

    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Run a Tasmota HTTP switch accessory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to accessory config file (default: ~/.tasmota/config.json)",
    )
    parser.add_argument(
        "--hostname",
        default=None,
        help="Device hostname or IP (overrides config file)",
    )
    parser.add_argument(
        "--relay",
        default=None,
        help="Relay index, e.g. 1 or 2 (overrides config file)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    sys.exit(asyncio.run(main(args)))
