"""Bounded retry for transport calls."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from tasmota_switch.errors import TasmotaError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 0.5


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = MAX_ATTEMPTS,
    delay: float = RETRY_DELAY_SECONDS,
    description: str = "operation",
) -> T:
    """Run ``operation`` up to ``max_attempts`` times, one attempt at a time.

    Waits a fixed ``delay`` between attempts. Only ``TasmotaError`` is retried;
    anything else propagates immediately. Cancelling the calling task cancels a
    pending delay.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        max_attempts: Total number of attempts (>= 1)
        delay: Seconds to wait between attempts
        description: Label used in log messages

    Returns:
        The operation's result

    Raises:
        TasmotaError: The last error, once all attempts are exhausted
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    attempt = 1
    while True:
        logger.debug(f"{description} (attempt {attempt}/{max_attempts})")
        try:
            return await operation()
        except TasmotaError as e:
            if attempt >= max_attempts:
                logger.warning(f"{description} failed after {attempt} attempts: {e}")
                raise
            logger.info(f"{description} error: {e}; retrying in {delay}s")
        attempt += 1
        await asyncio.sleep(delay)
