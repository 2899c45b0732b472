"""Routes classified step errors to the matching reporter channel."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from stepflow.core.step import Step
from stepflow.errors.structured import ASSERTION, StructuredError
from stepflow.observers.base import NullObserver

if TYPE_CHECKING:
    from stepflow.core.engine import ScenarioEngine

logger = logging.getLogger(__name__)


class ErrorObserver(NullObserver):
    async def on_step_error(
        self, test: ScenarioEngine, step: Step, error: StructuredError
    ) -> None:
        logger.error(f"Error in step '{step.name}' [{error.kind}]: {error.message}")
        if error.kind == ASSERTION:
            test.reporter.test_assertion_error(error)
        else:
            test.reporter.test_step_error(error)
