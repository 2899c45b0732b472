"""Lifecycle bracketing: forwards step transitions to the reporter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from stepflow.core.step import Step
from stepflow.errors.structured import StructuredError
from stepflow.observers.base import NullObserver, ObserverContext
from stepflow.reporting.reporter import LifecycleEvent

if TYPE_CHECKING:
    from stepflow.core.engine import ScenarioEngine


class LifecycleObserver(NullObserver):
    """Reports every step transition as a :class:`LifecycleEvent`.

    Step timings come from the shared context, so this observer must be
    registered after :class:`TimingObserver`.
    """

    def __init__(self, ctx: ObserverContext) -> None:
        self.ctx = ctx

    async def before_step(self, test: ScenarioEngine, step: Step) -> None:
        test.reporter.test_lifecycle(LifecycleEvent.BEFORE_STEP, step.name, test.sub_title)

    async def before_step_action(self, test: ScenarioEngine, step: Step, action: str) -> None:
        test.reporter.test_lifecycle(LifecycleEvent.BEFORE_STEP_ACTION, action)

    async def after_step_action(self, test: ScenarioEngine, step: Step, action: str) -> None:
        test.reporter.test_lifecycle(LifecycleEvent.AFTER_STEP_ACTION, action)

    async def on_step_passed(self, test: ScenarioEngine, step: Step) -> None:
        test.reporter.test_lifecycle(
            LifecycleEvent.STEP_SUCCEEDED,
            step.name,
            test.sub_title,
            timing=self.ctx.step_duration,
        )

    async def on_step_error(
        self, test: ScenarioEngine, step: Step, error: StructuredError
    ) -> None:
        test.reporter.test_lifecycle(
            LifecycleEvent.STEP_FAILED,
            step.name,
            test.sub_title,
            timing=self.ctx.step_duration,
            error_message=error.message,
        )

    async def after_step(self, test: ScenarioEngine, step: Step) -> None:
        test.reporter.test_lifecycle(LifecycleEvent.AFTER_STEP, step.name, test.sub_title)
