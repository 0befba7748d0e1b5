from __future__ import annotations

import asyncio

import pytest

from quiz_taker.core.services.countdown_timer import CountdownTimer


@pytest.mark.parametrize(("total", "interval"), [(0, 1.0), (-5, 1.0), (10, 0)])
def test_rejects_non_positive_settings(total, interval):
    with pytest.raises(ValueError):
        CountdownTimer(total_seconds=total, on_expire=lambda: None, interval_seconds=interval)


def test_manual_ticks_count_down_and_expire_once():
    expirations = []
    ticks = []
    timer = CountdownTimer(total_seconds=3, on_expire=lambda: expirations.append(True), on_tick=ticks.append)

    for _ in range(5):
        timer.tick()

    assert timer.remaining_seconds == 0
    assert ticks == [2, 1, 0]
    assert expirations == [True]


@pytest.mark.asyncio
async def test_running_timer_expires_on_its_own():
    expired = asyncio.Event()
    timer = CountdownTimer(total_seconds=5, on_expire=expired.set, interval_seconds=0.001)

    timer.start()
    assert timer.is_running
    await asyncio.wait_for(expired.wait(), timeout=5)

    assert timer.remaining_seconds == 0
    assert not timer.is_running


@pytest.mark.asyncio
async def test_cancel_stops_ticking():
    expirations = []
    timer = CountdownTimer(total_seconds=60, on_expire=lambda: expirations.append(True), interval_seconds=0.001)
    timer.start()
    await asyncio.sleep(0.01)

    timer.cancel()
    remaining = timer.remaining_seconds
    await asyncio.sleep(0.01)
    timer.tick()

    assert timer.remaining_seconds == remaining
    assert not timer.is_running
    assert expirations == []


@pytest.mark.asyncio
async def test_start_twice_is_an_error():
    timer = CountdownTimer(total_seconds=10, on_expire=lambda: None, interval_seconds=3600)
    timer.start()
    try:
        with pytest.raises(RuntimeError):
            timer.start()
    finally:
        timer.cancel()
