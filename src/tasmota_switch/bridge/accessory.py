"""Host-facing accessory shell around a Tasmota switch."""

import asyncio
import logging
import signal
from typing import Optional

from tasmota_switch.config import MIN_POLL_SECONDS, AccessoryConfig, AccessoryInfo
from tasmota_switch.bridge.poller import PollScheduler
from tasmota_switch.devices.base import CompletionCallback, StateListener
from tasmota_switch.devices.tasmota_switch import PowerStateClient, TasmotaSwitch
from tasmota_switch.transport.client import TasmotaHttpClient
from tasmota_switch.transport.retry import MAX_ATTEMPTS, RETRY_DELAY_SECONDS

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SwitchAccessory:
    """Wires a TasmotaSwitch to a poll timer and process lifecycle.

    Handles:
    - Initial read on start so the host shows the real state quickly
    - Periodic polling
    - Get/set handlers in the shape host platforms expect
    - One-time cleanup on SIGINT/SIGTERM or explicit stop()

    Usage:
        async with SwitchAccessory(config, on_state_changed=update) as accessory:
            accessory.install_cleanup_handlers()
            await accessory.wait_closed()
    """

    def __init__(
        self,
        config: AccessoryConfig,
        client: Optional[PowerStateClient] = None,
        on_state_changed: Optional[StateListener] = None,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY_SECONDS,
        min_poll_interval: float = MIN_POLL_SECONDS,
    ):
        """Initialize the accessory.

        Args:
            config: Accessory configuration
            client: Transport to use; an owned TasmotaHttpClient is created if omitted
            on_state_changed: Host callback fired on every state transition
            max_attempts: Attempts per read or write
            retry_delay: Seconds between attempts
            min_poll_interval: Floor below which the default poll interval is used
        """
        self._config = config
        self._owns_client = client is None
        self._client = client if client is not None else TasmotaHttpClient()
        self._switch = TasmotaSwitch(
            config,
            self._client,
            on_state_changed=on_state_changed,
            max_attempts=max_attempts,
            retry_delay=retry_delay,
        )
        self._poller = PollScheduler(
            self._switch.request_refresh,
            min_interval=min_poll_interval,
            name=config.name,
        )
        self._started = False
        self._stopped = False
        self._closed = asyncio.Event()
        self._signal_loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_task: Optional[asyncio.Task] = None

    @property
    def config(self) -> AccessoryConfig:
        return self._config

    @property
    def info(self) -> AccessoryInfo:
        return self._config.info

    @property
    def switch(self) -> TasmotaSwitch:
        return self._switch

    @property
    def poller(self) -> PollScheduler:
        return self._poller

    @property
    def is_running(self) -> bool:
        return self._started and not self._stopped

    async def start(self) -> None:
        """Kick off the initial read and start polling."""
        if self._stopped:
            raise RuntimeError(f"Accessory '{self._config.name}' was already stopped")
        if self._started:
            return
        self._started = True

        self._switch.request_refresh()
        self._poller.start(self._config.poll_interval)

    async def stop(self) -> None:
        """Stop polling, cancel pending retries and release the HTTP client.

        Runs once; later calls return immediately.
        """
        if self._stopped:
            return
        self._stopped = True

        logger.info(f"[{self._config.name}] Stopping accessory")
        self._poller.stop()
        await self._switch.close()
        if self._owns_client:
            await self._client.close()
        self._remove_signal_handlers()
        self._closed.set()

    async def wait_closed(self) -> None:
        """Block until stop() has completed."""
        await self._closed.wait()

    async def __aenter__(self) -> "SwitchAccessory":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def get_cached_state(self) -> bool:
        return self._switch.get_cached_state()

    def handle_get(self) -> bool:
        """Return the cached value at once and refresh it in the background."""
        value = self._switch.get_cached_state()
        self._switch.request_refresh()
        return value

    def handle_set(
        self, value: bool, on_complete: Optional[CompletionCallback] = None
    ) -> Optional[asyncio.Task]:
        """Apply ``value`` optimistically and send it to the device.

        After stop() nothing is sent; the error goes to ``on_complete`` instead.
        """
        if self._switch.is_closed:
            error = RuntimeError(f"Accessory '{self._config.name}' is stopped")
            logger.warning(f"[{self._config.name}] Ignoring set request: {error}")
            if on_complete is not None:
                on_complete(error)
            return None
        return self._switch.request_set(bool(value), on_complete)

    def identify(self) -> None:
        logger.info(f"[{self._config.name}] Identify requested")

    def install_cleanup_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> bool:
        """Stop the accessory on SIGINT/SIGTERM. Installs at most once.

        Returns:
            True if handlers were installed by this call
        """
        if self._signal_loop is not None:
            return False

        loop = loop or asyncio.get_running_loop()
        try:
            for sig in SHUTDOWN_SIGNALS:
                loop.add_signal_handler(sig, self._on_signal, sig)
        except (NotImplementedError, RuntimeError) as e:
            logger.warning(f"[{self._config.name}] Signal handlers unavailable: {e}")
            return False

        self._signal_loop = loop
        return True

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info(f"[{self._config.name}] Received {sig.name}, shutting down")
        if self._stop_task is None:
            self._stop_task = self._signal_loop.create_task(self.stop())

    def _remove_signal_handlers(self) -> None:
        if self._signal_loop is None:
            return
        for sig in SHUTDOWN_SIGNALS:
            self._signal_loop.remove_signal_handler(sig)
        self._signal_loop = None
