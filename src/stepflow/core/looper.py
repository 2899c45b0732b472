"""Iteration looper bounded by count and wall-clock duration."""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Optional

from stepflow.config.schema import Settings

logger = logging.getLogger(__name__)


class Looper:
    """Runs an iteration function until the loop count or duration is spent.

    A ``loop_count`` of zero or less means unbounded. A positive ``duration``
    arms a deadline at construction; once it passes no further iteration
    starts. Iterations are strictly sequential.
    """

    def __init__(self, settings: Settings, running: bool = True) -> None:
        self.iterations = 0
        self.loop_count = settings.loop_count
        self._cancelled = not running
        self._deadline: Optional[float] = None
        if settings.duration > 0:
            self._deadline = time.monotonic() + settings.duration

    @property
    def cancelled(self) -> bool:
        if self._deadline is not None and time.monotonic() >= self._deadline:
            logger.debug("Looper duration elapsed")
            self._cancelled = True
            self._deadline = None
        return self._cancelled

    @property
    def continue_loop(self) -> bool:
        has_infinite_loops = self.loop_count <= 0
        has_loops_left = self.iterations < self.loop_count
        return not self.cancelled and (has_loops_left or has_infinite_loops)

    def stop(self) -> None:
        self._cancelled = True

    def finish(self) -> None:
        self._deadline = None

    async def run(self, iterator: Callable[[int], Awaitable[None]]) -> int:
        """Invoke ``iterator`` once per iteration until the loop is spent.

        Args:
            iterator: Async callable receiving the 1-based iteration number

        Returns:
            Total number of iterations started
        """
        try:
            while self.continue_loop:
                self.iterations += 1
                await iterator(self.iterations)
        finally:
            self.finish()
        return self.iterations
