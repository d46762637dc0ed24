"""Tests for the bounded retry policy."""

import asyncio
import logging

import pytest

from tasmota_switch.errors import TransportError
from tasmota_switch.transport.retry import MAX_ATTEMPTS, with_retry


class FlakyOperation:
    """Fails ``failures`` times before returning ``result``."""

    def __init__(self, failures: int, result="ok"):
        self.failures = failures
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise TransportError(f"failure {self.calls}")
        return self.result


@pytest.mark.asyncio
async def test_first_attempt_succeeds():
    op = FlakyOperation(failures=0)
    assert await with_retry(op, delay=0) == "ok"
    assert op.calls == 1


@pytest.mark.asyncio
async def test_recovers_after_failures():
    op = FlakyOperation(failures=2)
    assert await with_retry(op, max_attempts=3, delay=0) == "ok"
    assert op.calls == 3


@pytest.mark.asyncio
async def test_exhaustion_raises_last_error(caplog):
    op = FlakyOperation(failures=100)

    with caplog.at_level(logging.WARNING):
        with pytest.raises(TransportError, match=f"failure {MAX_ATTEMPTS}"):
            await with_retry(op, delay=0, description="Reading state")

    assert op.calls == MAX_ATTEMPTS
    assert f"Reading state failed after {MAX_ATTEMPTS} attempts" in caplog.text


@pytest.mark.asyncio
async def test_other_errors_are_not_retried():
    calls = 0

    async def op():
        nonlocal calls
        calls += 1
        raise KeyError("bug")

    with pytest.raises(KeyError):
        await with_retry(op, delay=0)
    assert calls == 1


@pytest.mark.asyncio
async def test_invalid_max_attempts():
    with pytest.raises(ValueError):
        await with_retry(FlakyOperation(0), max_attempts=0)


@pytest.mark.asyncio
async def test_cancel_during_delay_stops_retrying():
    op = FlakyOperation(failures=100)
    task = asyncio.create_task(with_retry(op, delay=10))

    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert op.calls == 1
