"""Tests for the PollScheduler."""

import asyncio
import logging

import pytest

from tasmota_switch.bridge.poller import PollScheduler
from tasmota_switch.config import DEFAULT_POLL_SECONDS


class Counter:
    def __init__(self):
        self.count = 0

    def __call__(self):
        self.count += 1


@pytest.mark.asyncio
async def test_triggers_periodically():
    counter = Counter()
    poller = PollScheduler(counter, min_interval=0.01)

    assert poller.start(0.02) is True
    await asyncio.sleep(0.09)
    poller.stop()

    assert counter.count >= 2


@pytest.mark.asyncio
async def test_start_is_idempotent():
    poller = PollScheduler(Counter(), min_interval=0.01)

    assert poller.start(0.05) is True
    assert poller.start(0.01) is False
    assert poller.interval == 0.05
    poller.stop()


@pytest.mark.asyncio
async def test_stop_is_idempotent_and_halts_ticks():
    counter = Counter()
    poller = PollScheduler(counter, min_interval=0.01)
    poller.start(0.02)

    assert poller.stop() is True
    assert poller.stop() is False
    assert poller.is_running is False

    await asyncio.sleep(0.06)
    assert counter.count == 0


@pytest.mark.asyncio
async def test_below_floor_uses_default():
    poller = PollScheduler(Counter())

    poller.start(1)

    assert poller.interval == DEFAULT_POLL_SECONDS
    poller.stop()


@pytest.mark.asyncio
async def test_non_numeric_uses_default():
    poller = PollScheduler(Counter())

    poller.start("often")

    assert poller.interval == DEFAULT_POLL_SECONDS
    poller.stop()


@pytest.mark.asyncio
async def test_trigger_errors_do_not_stop_polling(caplog):
    calls = []

    def broken():
        calls.append(1)
        raise RuntimeError("boom")

    poller = PollScheduler(broken, min_interval=0.01)

    with caplog.at_level(logging.ERROR):
        poller.start(0.02)
        await asyncio.sleep(0.09)
        poller.stop()

    assert len(calls) >= 2
    assert "Poll trigger failed" in caplog.text


@pytest.mark.asyncio
async def test_tick_does_not_wait_for_slow_read():
    started = []

    async def slow_read():
        await asyncio.sleep(10)

    def trigger():
        started.append(asyncio.ensure_future(slow_read()))

    poller = PollScheduler(trigger, min_interval=0.01)
    poller.start(0.02)
    await asyncio.sleep(0.09)
    poller.stop()

    assert len(started) >= 2
    for task in started:
        task.cancel()
    await asyncio.gather(*started, return_exceptions=True)
