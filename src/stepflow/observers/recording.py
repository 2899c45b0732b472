"""Correlates target actions with the step that issued them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from stepflow.core.step import Step
from stepflow.observers.base import ActionRecord, NullObserver, ObserverContext

if TYPE_CHECKING:
    from stepflow.core.engine import ScenarioEngine

logger = logging.getLogger(__name__)


class ActionRecordingObserver(NullObserver):
    def __init__(self, ctx: ObserverContext) -> None:
        self.ctx = ctx

    async def before(self, test: ScenarioEngine) -> None:
        self.ctx.actions.clear()

    async def after_step_action(self, test: ScenarioEngine, step: Step, action: str) -> None:
        self.ctx.actions.append(
            ActionRecord(
                step_name=step.name,
                action=action,
                duration=self.ctx.last_action_duration,
            )
        )

    async def after_step(self, test: ScenarioEngine, step: Step) -> None:
        logger.debug(
            f"Step '{step.name}' issued {len(self.ctx.actions_for(step.name))} actions"
        )
