"""Tasmota relay switch: cached state kept in sync with the device over HTTP."""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Coroutine, Optional, Protocol

from tasmota_switch.config import AccessoryConfig
from tasmota_switch.devices.base import BaseSwitch, CompletionCallback, StateListener
from tasmota_switch.errors import AmbiguousAcknowledgementError, TasmotaError
from tasmota_switch.transport.commands import (
    build_read_command,
    build_url,
    build_write_command,
    check_acknowledgement,
    extract_power_state,
    power_token,
)
from tasmota_switch.transport.retry import MAX_ATTEMPTS, RETRY_DELAY_SECONDS, with_retry

logger = logging.getLogger(__name__)


class PowerStateClient(Protocol):
    def fetch_power_state(self, url: str) -> Awaitable[dict[str, Any]]:
        ...


class TasmotaSwitch(BaseSwitch):
    """State reconciliation engine for one Tasmota relay.

    Holds a single cached on/off value. The cache is only ever set from a parsed
    device response or from an optimistically applied command, and listeners are
    notified once per actual transition. Until the first read the state is
    unknown and reads as off, so an initial OFF report is not a transition.

    Reads and writes are retried up to ``max_attempts`` times with a fixed delay.
    Read failures are logged and leave the cache alone. Write failures trigger a
    corrective read and are re-raised to the caller (or handed to the
    ``on_complete`` callback of ``request_set``).

    Cycles are not serialized against each other: a poll may race a write's
    confirming read, and whichever finishes last wins.
    """

    def __init__(
        self,
        config: AccessoryConfig,
        client: PowerStateClient,
        on_state_changed: Optional[StateListener] = None,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY_SECONDS,
    ):
        """Initialize the switch.

        Args:
            config: Accessory configuration (hostname, relay, credentials)
            client: Transport exposing ``fetch_power_state(url)``
            on_state_changed: Optional listener for state transitions
            max_attempts: Attempts per read or write before giving up
            retry_delay: Seconds between attempts
        """
        self._config = config
        self._client = client
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._state: Optional[bool] = None
        self._listeners: list[StateListener] = []
        self._tasks: set[asyncio.Task] = set()
        self._closed = False
        self._read_command = build_read_command(config.relay)
        self._read_url = self._url_for(self._read_command)

        if on_state_changed is not None:
            self._listeners.append(on_state_changed)

    def _url_for(self, command: str) -> str:
        return build_url(
            self._config.hostname, command, self._config.username, self._config.password
        )

    @property
    def device_type(self) -> str:
        return "switch"

    @property
    def config(self) -> AccessoryConfig:
        return self._config

    @property
    def is_on(self) -> bool:
        return self.get_cached_state()

    @property
    def state_known(self) -> bool:
        """Whether any device response or command has set the cache yet."""
        return self._state is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def pending_operations(self) -> int:
        """Number of background reads/writes not yet finished."""
        return sum(1 for task in self._tasks if not task.done())

    def get_cached_state(self) -> bool:
        return bool(self._state)

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _apply_state(self, new_state: bool) -> bool:
        """Store ``new_state`` and notify listeners if it differs from the cache.

        Returns:
            True if this was a transition
        """
        previous = self.get_cached_state()
        self._state = new_state
        if new_state == previous:
            return False

        logger.info(f"[{self._config.name}] State updated: {power_token(previous)} -> {power_token(new_state)}")
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception(f"[{self._config.name}] State listener failed")
        return True

    async def _fetch(self, url: str, description: str) -> dict[str, Any]:
        return await with_retry(
            lambda: self._client.fetch_power_state(url),
            max_attempts=self._max_attempts,
            delay=self._retry_delay,
            description=f"[{self._config.name}] {description}",
        )

    async def refresh(self) -> Optional[bool]:
        """Run a read cycle.

        Never raises for device errors; a failed or inconclusive read leaves the
        cached state as it was.
        """
        if self._closed:
            logger.debug(f"[{self._config.name}] Skipping read, switch is closed")
            return None

        try:
            payload = await self._fetch(self._read_url, f"Reading state ({self._read_command})")
        except TasmotaError as e:
            logger.error(f"[{self._config.name}] Read failed: {e}")
            return None

        new_state = extract_power_state(payload, self._config.relay)
        if new_state is None:
            logger.warning(
                f"[{self._config.name}] Unexpected JSON payload, cannot find POWER key: "
                f"{json.dumps(payload)}"
            )
            return None

        self._apply_state(new_state)
        return new_state

    async def set_state(self, desired: bool) -> None:
        """Run a write cycle: optimistic update, send, then confirm by reading back.

        Raises:
            TasmotaError: If the command failed after all retries. The cache has
                already been resynced from the device by then (when reachable).
        """
        self._ensure_open()
        desired = bool(desired)
        self._apply_state(desired)
        await self._write(desired)

    async def _write(self, desired: bool) -> None:
        command = build_write_command(self._config.relay, desired)
        logger.info(f"[{self._config.name}] Sending command: {command}")

        try:
            payload = await self._fetch(self._url_for(command), f"Sending {command}")
        except TasmotaError as e:
            logger.error(f"[{self._config.name}] Set failed, re-reading device state: {e}")
            await self.refresh()
            raise

        try:
            check_acknowledgement(payload, self._config.relay, desired)
        except AmbiguousAcknowledgementError as e:
            logger.warning(f"[{self._config.name}] {e}")

        await self.refresh()

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"Switch '{self._config.name}' is closed")

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def request_refresh(self) -> Optional[asyncio.Task]:
        """Start a read cycle in the background (poll ticks, get handlers).

        Returns:
            The background task, or None if the switch is closed
        """
        if self._closed:
            logger.debug(f"[{self._config.name}] Ignoring refresh request, switch is closed")
            return None
        return self._spawn(self.refresh())

    def request_set(
        self, desired: bool, on_complete: Optional[CompletionCallback] = None
    ) -> asyncio.Task:
        """Apply ``desired`` to the cache now and send it in the background.

        ``on_complete`` is called exactly once with None on success or the
        final error on failure. It is not called if the switch is closed while
        the command is still in flight.
        """
        self._ensure_open()
        desired = bool(desired)
        self._apply_state(desired)
        return self._spawn(self._write_and_complete(desired, on_complete))

    async def _write_and_complete(
        self, desired: bool, on_complete: Optional[CompletionCallback]
    ) -> None:
        error: Optional[Exception] = None
        try:
            await self._write(desired)
        except TasmotaError as e:
            error = e

        if on_complete is None:
            return
        try:
            on_complete(error)
        except Exception:
            logger.exception(f"[{self._config.name}] Completion callback failed")

    async def close(self) -> None:
        """Cancel background reads/writes, including pending retry delays."""
        if self._closed:
            return
        self._closed = True

        current = asyncio.current_task()
        pending = [task for task in self._tasks if not task.done() and task is not current]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.info(f"[{self._config.name}] Cancelled {len(pending)} pending operation(s)")
