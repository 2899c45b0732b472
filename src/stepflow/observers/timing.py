"""Step and action timing capture."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from stepflow.core.step import Step
from stepflow.errors.structured import StructuredError
from stepflow.observers.base import NullObserver, ObserverContext

if TYPE_CHECKING:
    from stepflow.core.engine import ScenarioEngine


class TimingObserver(NullObserver):
    """Measures wall time of each step body and each target action.

    Registered first so that later observers can read the durations from
    the shared context.
    """

    def __init__(self, ctx: ObserverContext) -> None:
        self.ctx = ctx

    async def before_step(self, test: ScenarioEngine, step: Step) -> None:
        self.ctx.step_started_at = time.monotonic()
        self.ctx.step_duration = None

    async def before_step_action(self, test: ScenarioEngine, step: Step, action: str) -> None:
        self.ctx.action_started_at = time.monotonic()

    async def after_step_action(self, test: ScenarioEngine, step: Step, action: str) -> None:
        if self.ctx.action_started_at is not None:
            self.ctx.last_action_duration = time.monotonic() - self.ctx.action_started_at
            self.ctx.action_started_at = None

    async def on_step_passed(self, test: ScenarioEngine, step: Step) -> None:
        self._stop_step_timer()

    async def on_step_error(
        self, test: ScenarioEngine, step: Step, error: StructuredError
    ) -> None:
        self._stop_step_timer()

    def _stop_step_timer(self) -> None:
        if self.ctx.step_started_at is not None:
            self.ctx.step_duration = time.monotonic() - self.ctx.step_started_at
