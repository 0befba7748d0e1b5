"""Countdown driving auto-finish of timed quiz sessions."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging

from quiz_taker.constants.quiz_constants import TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class CountdownTimer:
    """Decrements a second counter once per tick and signals expiry once.

    The timer runs as a single asyncio task on the caller's event loop, so
    ticks are strictly sequential.
    """

    def __init__(
        self,
        total_seconds: int,
        on_expire: Callable[[], None],
        on_tick: Callable[[int], None] | None = None,
        interval_seconds: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        if total_seconds <= 0:
            raise ValueError("Countdown duration must be a positive number of seconds.")
        if interval_seconds <= 0:
            raise ValueError("Tick interval must be positive.")
        self._remaining_seconds = total_seconds
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self._started = False
        self._stopped = False

    @property
    def remaining_seconds(self) -> int:
        return self._remaining_seconds

    @property
    def is_running(self) -> bool:
        return self._started and not self._stopped

    def start(self) -> None:
        """Begin ticking on the running event loop."""
        if self._started:
            raise RuntimeError("Countdown has already been started.")
        loop = asyncio.get_running_loop()
        self._started = True
        self._task = loop.create_task(self._run(), name="quiz-countdown")

    def cancel(self) -> None:
        self._stopped = True
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def tick(self) -> None:
        """Apply one elapsed second."""
        if self._stopped or self._remaining_seconds <= 0:
            return
        self._remaining_seconds -= 1
        if self._on_tick is not None:
            self._on_tick(self._remaining_seconds)
        if self._remaining_seconds == 0:
            self._stopped = True
            logger.info("Countdown reached zero")
            self._on_expire()

    async def _run(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self._interval_seconds)
            self.tick()
