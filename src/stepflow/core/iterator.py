"""Step traversal for a single iteration.

The StepIterator owns traversal order, per-step gating, recovery dispatch
and the accounting of steps that were never reached. Execution state lives
in a per-iteration :class:`StepState` map keyed by step name, so nothing
is written onto the step definitions themselves.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

from stepflow.core.cancellation import CancellationToken
from stepflow.core.looper import Looper
from stepflow.core.step import (
    Step,
    StepResult,
    StepState,
    SummaryStep,
    TargetPredicate,
    call_step_fn,
    ordinal,
)

logger = logging.getLogger(__name__)


class StepIterator:
    """Drives one traversal of a step sequence.

    Args:
        steps: Steps in declaration order
        on_record: Receives every summary row recorded through :meth:`record`
        cancel_token: Checked before each step; a requested cancellation
            ends the traversal
    """

    def __init__(
        self,
        steps: Sequence[Step],
        on_record: Callable[[SummaryStep], None],
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        self.steps = list(steps)
        self._on_record = on_record
        self._cancel_token = cancel_token
        self.states: dict[str, StepState] = {s.name: StepState() for s in self.steps}

    def state(self, step: Step) -> StepState:
        return self.states[step.name]

    @property
    def cancelled(self) -> bool:
        return self._cancel_token is not None and self._cancel_token.is_cancellation_requested

    def record(self, step: Step, result: StepResult) -> None:
        """Record an outcome row for ``step`` and mark it executed."""
        self.state(step).executed = True
        self._on_record(SummaryStep(step_name=step.name, result=result))

    async def run(self, executor: Callable[[Step], Awaitable[None]]) -> None:
        """Pass each step to ``executor`` in declaration order.

        A step with a repeat option is passed ``repeat.count`` times in a
        row. Every pass starts with a fresh recovery budget. Exceptions
        from ``executor`` propagate and halt traversal.
        """
        for step in self.steps:
            if self.cancelled:
                logger.debug("Cancellation requested, stopping step traversal")
                return
            state = self.state(step)
            repeat = step.options.repeat
            if repeat is None:
                state.recovery_tries = 0
                await executor(step)
                if self.cancelled:
                    return
                state.executed = True
                continue

            for repetition in range(1, repeat.count + 1):
                if self.cancelled:
                    return
                state.executed = False
                state.recovery_tries = 0
                try:
                    await executor(step)
                except BaseException:
                    state.repeat_iteration = repetition if state.executed else repetition - 1
                    raise
                if self.cancelled:
                    state.repeat_iteration = repetition - 1
                    return
                state.repeat_iteration = repetition
            state.repeat_iteration = 0
            state.executed = True

    async def call_condition(self, step: Step, iteration: int, target: Any) -> bool:
        """Evaluate the step's gating options.

        Records an UNEXECUTED row for pending steps and for ``once`` steps
        after the first iteration, and a SKIPPED row for skipped steps and
        steps whose condition is false.

        Returns:
            True if the step body should run
        """
        options = step.options
        if options.pending or (options.once and iteration > 1):
            logger.debug(f"Step '{step.name}' not executed (pending/once)")
            self.record(step, StepResult.UNEXECUTED)
            return False
        if options.skip:
            logger.debug(f"Skipping step '{step.name}'")
            self.record(step, StepResult.SKIPPED)
            return False
        if options.condition is not None:
            if not await call_step_fn(options.condition, target):
                logger.info(f"Skipping step '{step.name}': condition not met")
                self.record(step, StepResult.SKIPPED)
                return False
        return True

    async def call_predicate(self, predicate: TargetPredicate, target: Any) -> bool:
        return bool(await call_step_fn(predicate, target))

    async def call_recovery(
        self,
        step: Step,
        looper: Optional[Looper],
        target: Any,
        recovery_steps: Mapping[str, Sequence[Step]],
        tries: int,
        data: Any = None,
        on_attempt: Optional[Callable[[Step, StepState], None]] = None,
    ) -> bool:
        """Run the recovery sequence registered for a failed step.

        Args:
            step: The failed step
            looper: The run's looper; no recovery is attempted once stopped
            target: Execution target passed to the recovery steps
            recovery_steps: Recovery sequences keyed by step name
            tries: Maximum recovery attempts for this execution attempt
            data: Data record passed to the recovery steps
            on_attempt: Called with the step state before each attempt

        Returns:
            True if a recovery pass completed without error, False if no
            recovery is registered or the tries are exhausted
        """
        sequence = recovery_steps.get(step.name)
        if not sequence:
            logger.debug(f"No recovery registered for step '{step.name}'")
            return False

        state = self.state(step)
        while state.recovery_tries < tries:
            if looper is not None and looper.cancelled:
                logger.info(f"Run stopping, not recovering step '{step.name}'")
                return False
            state.recovery_tries += 1
            label = f"{ordinal(state.recovery_tries)} recovery"
            if on_attempt is not None:
                on_attempt(step, state)
            logger.info(f"Running {label} for step '{step.name}'")
            try:
                for recovery_step in sequence:
                    await call_step_fn(recovery_step.fn, target, data)
            except Exception as e:
                logger.warning(f"{label} for step '{step.name}' failed: {e}")
                continue
            return True

        logger.error(
            f"Recovery for step '{step.name}' exhausted after {state.recovery_tries} tries"
        )
        return False

    def loop_unexecuted_steps(self, visit: Callable[[Step], None]) -> None:
        """Call ``visit`` once per unexecuted step or remaining repetition.

        A repeated step interrupted after some repetitions gets one visit per
        remaining repetition; any other step that never reached an outcome
        gets exactly one.
        """
        for step in self.steps:
            state = self.state(step)
            repeat = step.options.repeat
            if repeat is not None and state.repeat_iteration > 0:
                while state.repeat_iteration < repeat.count:
                    state.repeat_iteration += 1
                    visit(step)
                state.repeat_iteration = 0
                continue
            if not state.executed:
                visit(step)
