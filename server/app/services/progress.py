"""
Cosmetic progress indicator shown while a submission is in flight.

The upstream API reports no progress, so the value creeps up by a random step
on a timer and stops at a ceiling until the request settles.
"""
from __future__ import annotations

import asyncio
import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

logger = logging.getLogger(__name__)

TICK_INTERVAL = 0.45
START_VALUE = 5.0
MAX_STEP = 8.0
CEILING = 92.0
COMPLETE = 100.0


class ProgressTicker:
    """
    Timer-driven progress value.

    ``running()`` starts the timer and cancels it when the block exits,
    whatever the outcome. ``complete()`` snaps to 100, ``reset()`` back to 0.
    """

    def __init__(
        self,
        interval: float = TICK_INTERVAL,
        max_step: float = MAX_STEP,
        ceiling: float = CEILING,
        on_change: Optional[Callable[[float], None]] = None,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self.interval = interval
        self.max_step = max_step
        self.ceiling = ceiling
        self.value = 0.0
        self._on_change = on_change
        self._rng = rng
        self._task: Optional[asyncio.Task] = None

    def _set(self, value: float) -> None:
        self.value = value
        if self._on_change is not None:
            self._on_change(value)

    def tick(self) -> float:
        """Advance by a random step, never past the ceiling."""
        self._set(min(self.value + self._rng() * self.max_step, self.ceiling))
        return self.value

    def complete(self) -> None:
        self._set(COMPLETE)

    def reset(self) -> None:
        self._set(0.0)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.tick()

    @asynccontextmanager
    async def running(self) -> AsyncIterator["ProgressTicker"]:
        self._set(START_VALUE)
        self._task = asyncio.create_task(self._run())
        try:
            yield self
        finally:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
