"""Periodic background reads."""

import asyncio
import logging
from typing import Any, Callable, Optional, Union

from tasmota_switch.config import MIN_POLL_SECONDS, normalize_poll_interval

logger = logging.getLogger(__name__)


class PollScheduler:
    """Calls ``trigger`` every ``interval`` seconds on the running event loop.

    Ticks fire on a fixed schedule and never wait for the read they start, so a
    slow or retrying read can't delay or re-arm the timer.
    """

    def __init__(
        self,
        trigger: Callable[[], Any],
        min_interval: float = MIN_POLL_SECONDS,
        name: str = "poller",
    ):
        self._trigger = trigger
        self._min_interval = min_interval
        self._name = name
        self._interval: Optional[Union[int, float]] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval(self) -> Optional[Union[int, float]]:
        """Effective interval of the current (or last) run."""
        return self._interval

    def start(self, interval: Any) -> bool:
        """Start polling. No-op if already running.

        Intervals that are invalid or below the floor fall back to the default.

        Returns:
            True if polling was started by this call
        """
        if self.is_running:
            return False

        self._interval = normalize_poll_interval(interval, minimum=self._min_interval)
        logger.info(f"[{self._name}] Starting polling every {self._interval}s")
        self._task = asyncio.get_running_loop().create_task(self._run())
        return True

    def stop(self) -> bool:
        """Cancel the timer. Reads already in flight are left to finish.

        Returns:
            True if a running timer was stopped
        """
        if self._task is None:
            return False
        self._task.cancel()
        self._task = None
        logger.info(f"[{self._name}] Stopped polling")
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._trigger()
            except Exception:
                logger.exception(f"[{self._name}] Poll trigger failed")
