"""StepFlow scenario engine.

This module provides the ScenarioEngine class that executes one complete
iteration of a scenario script: setup, hooks, step traversal, recovery,
teardown and the per-iteration summary.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Sequence, Union

from stepflow.config.schema import Settings
from stepflow.core.cancellation import CancellationToken
from stepflow.core.iterator import StepIterator
from stepflow.core.looper import Looper
from stepflow.core.step import (
    Hook,
    HookSet,
    Script,
    Step,
    StepResult,
    StepState,
    SummaryStep,
    call_step_fn,
    ordinal,
)
from stepflow.core.target import ExecutionTarget, Interceptor
from stepflow.errors import (
    ConfigurationError,
    DataExhaustedError,
    HookError,
    HookTimeoutError,
    StepFailureError,
    StructuredError,
    lift_to_structured_error,
)
from stepflow.observers import (
    ActionRecordingObserver,
    ErrorObserver,
    LifecycleObserver,
    ObserverChain,
    ObserverContext,
    ObserverFactory,
    TimingObserver,
)
from stepflow.reporting.console import ScriptConsole
from stepflow.reporting.reporter import LifecycleEvent, Reporter

logger = logging.getLogger(__name__)

HOOK_EVENTS = {
    "before_all": (LifecycleEvent.BEFORE_ALL, LifecycleEvent.BEFORE_ALL_FINISHED),
    "after_all": (LifecycleEvent.AFTER_ALL, LifecycleEvent.AFTER_ALL_FINISHED),
    "before_each": (LifecycleEvent.BEFORE_EACH, LifecycleEvent.BEFORE_EACH_FINISHED),
    "after_each": (LifecycleEvent.AFTER_EACH, LifecycleEvent.AFTER_EACH_FINISHED),
}


class ScenarioEngine:
    """Executes iterations of a scenario script against an execution target.

    Each iteration runs through:
    1. Setup: reopen the target, attach the interceptor, apply directives,
       feed one data record
    2. ``before_all`` hooks
    3. Every step in order: ``before_each`` hooks, gating, the step body
       raced against the cancellation token, recovery on failure,
       ``after_each`` hooks
    4. Teardown and ``after_all`` hooks, which always run

    Example:
        ```python
        engine = ScenarioEngine(target, LoggingReporter())
        engine.enqueue_script(script, {"loop_count": 1})
        await engine.run(iteration=1)
        print(engine.summarize_step())
        ```
    """

    def __init__(
        self,
        target: ExecutionTarget,
        reporter: Reporter,
        observer_factory: Optional[ObserverFactory] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            target: Execution target the steps act on
            reporter: Receives lifecycle events and failures
            observer_factory: Optional hook returning extra observers for an
                iteration, given the iteration's shared observer context
        """
        self.target = target
        self.reporter = reporter
        self.observer_factory = observer_factory
        self.console = ScriptConsole(reporter)

        self.script: Optional[Script] = None
        self.settings = Settings()
        self.steps: list[Step] = []
        self.hooks = HookSet()
        self.recovery_steps: Mapping[str, Sequence[Step]] = {}
        self.interceptor = Interceptor()

        self.failed = False
        self.sub_title = ""
        self.summary_step: list[SummaryStep] = []
        self.observer_context = ObserverContext()
        self.last_error: Optional[StructuredError] = None

        self._observers: Optional[ObserverChain] = None
        self._abandoned: set[asyncio.Future[Any]] = set()

    @property
    def skipping(self) -> bool:
        return self.failed

    @property
    def step_names(self) -> list[str]:
        return [s.name for s in self.steps]

    def summarize_step(self) -> list[SummaryStep]:
        return self.summary_step

    def reset_summarize_step(self) -> None:
        self.summary_step = []

    def enqueue_script(
        self,
        script: Script,
        settings_override: Union[Settings, Mapping[str, Any], None] = None,
    ) -> Settings:
        """Load a script, applying caller overrides on top of its settings.

        Args:
            script: The evaluated scenario script
            settings_override: Overrides as a mapping, or a Settings instance
                whose explicitly set fields take precedence

        Returns:
            The resolved settings used for every iteration
        """
        if isinstance(settings_override, Settings):
            overrides = settings_override.model_dump(exclude_unset=True)
        else:
            overrides = dict(settings_override or {})

        self.script = script
        self.settings = script.settings.merged(overrides)
        self.steps = list(script.steps)
        self.hooks = script.hooks
        self.recovery_steps = script.recovery_steps
        self.interceptor = Interceptor(self.settings.blocked_domains)

        logger.debug(
            f"Enqueued script '{self.settings.name}' with {len(self.steps)} steps"
        )
        return self.settings

    async def before_run(self) -> None:
        """Await the script's ``before_run`` callable, if it has one."""
        if self.script is None or self.script.before_run is None:
            return
        logger.debug("before_run()")
        await call_step_fn(self.script.before_run)

    async def run(self, iteration: Optional[int] = None) -> None:
        """Run one iteration with a private cancellation token and looper."""
        await self.run_with_cancellation(
            iteration or 0,
            CancellationToken(),
            Looper(self.settings),
        )

    async def cancel(self) -> None:
        """Mark the run failed and give observers their final notification."""
        self.failed = True
        if self._observers is not None:
            await self._observers.after(self)

    async def run_with_cancellation(
        self,
        iteration: int,
        cancel_token: CancellationToken,
        looper: Looper,
    ) -> None:
        """Execute one iteration.

        Args:
            iteration: 1-based iteration number (0 when run standalone)
            cancel_token: Shared token; when requested, the running step is
                abandoned and no further steps start
            looper: The run's looper, consulted before recovery

        Raises:
            DataExhaustedError: If the script's data feeder is exhausted
            HookError: If a hook fails or times out under the "fail" policy
            StepFailureError: If a step fails and cannot be recovered
        """
        if self.script is None:
            raise ConfigurationError("No script enqueued")

        ctx = ObserverContext()
        self.observer_context = ctx
        custom = list(self.observer_factory(ctx)) if self.observer_factory else []
        observers = ObserverChain(
            [
                TimingObserver(ctx),
                ActionRecordingObserver(ctx),
                *custom,
                LifecycleObserver(ctx),
                ErrorObserver(),
            ]
        )
        self._observers = observers

        target = self.target
        target.settings = self.settings
        target.current_step = None
        target.action_listener = self

        await target.reopen(self.settings.incognito)
        await self.interceptor.attach(target)

        self.failed = False
        self.sub_title = ""
        self.last_error = None

        logger.debug(f"Iteration {iteration} start")

        step_iterator = StepIterator(self.steps, self._record_summary, cancel_token)
        data_record: Any = None
        failure: Optional[BaseException] = None
        try:
            await self._apply_directives(target)
            await observers.before(self)

            data_record = self.script.test_data.feed()
            if data_record is None:
                raise DataExhaustedError()
            logger.debug(f"Data record: {data_record!r}")

            await self._run_hooks("before_all", self.hooks.before_all, data_record)

            async def execute(step: Step) -> None:
                await self._run_each_hooks("before_each", self.hooks.before_each, data_record)

                if not await step_iterator.call_condition(step, iteration, target):
                    return

                predicate = step.options.predicate
                if predicate is not None:
                    if not await step_iterator.call_predicate(predicate, target):
                        logger.debug(f"Predicate not met for step '{step.name}'")
                        return

                target.current_step = step
                try:
                    passed = await self._race_step(
                        observers, step_iterator, step, data_record, cancel_token
                    )
                finally:
                    target.current_step = None

                if passed is None or cancel_token.is_cancellation_requested:
                    return

                if not passed:
                    recovered = await step_iterator.call_recovery(
                        step,
                        looper,
                        target,
                        self.recovery_steps,
                        self.settings.tries,
                        data_record,
                        on_attempt=self._on_recovery_attempt,
                    )
                    if not recovered:
                        error = self.last_error
                        raise StepFailureError(
                            step.name,
                            error.message if error else "step error -> failed",
                            original_error=error,
                        )
                    logger.info(f"Step '{step.name}' recovered")
                    self.failed = False

                await self._run_each_hooks("after_each", self.hooks.after_each, data_record)

            await step_iterator.run(execute)
        except Exception as e:
            self.failed = True
            failure = e
            raise
        finally:
            await self._after_run_steps(step_iterator)
            await observers.after(self)
            try:
                await self._run_hooks("after_all", self.hooks.after_all, data_record)
            except HookError as e:
                if failure is None:
                    raise
                logger.error(f"{e} (iteration already failed: {failure})")

    async def _race_step(
        self,
        observers: ObserverChain,
        step_iterator: StepIterator,
        step: Step,
        data_record: Any,
        cancel_token: CancellationToken,
    ) -> Optional[bool]:
        """Race the step against the cancellation token.

        Returns:
            True if the step passed, False if it failed, None if cancellation
            won and the step was abandoned
        """
        original_settings = self.target.settings
        step_task = asyncio.ensure_future(
            self.run_step(observers, step_iterator, step, data_record)
        )
        cancel_task = asyncio.ensure_future(cancel_token.wait())
        try:
            done, _ = await asyncio.wait(
                {step_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            step_task.cancel()
            cancel_task.cancel()
            raise

        if step_task not in done:
            logger.info(f"Cancellation requested, abandoning step '{step.name}'")
            self._abandon(step_task)
            self.target.settings = original_settings
            return None

        cancel_task.cancel()
        return step_task.result()

    def _abandon(self, task: asyncio.Future[Any]) -> None:
        self._abandoned.add(task)

        def _forget(t: asyncio.Future[Any]) -> None:
            self._abandoned.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.debug(f"Abandoned step raised: {t.exception()}")

        task.add_done_callback(_forget)

    async def run_step(
        self,
        observers: ObserverChain,
        step_iterator: StepIterator,
        step: Step,
        data_record: Any,
    ) -> bool:
        """Run a step body and record its outcome.

        The target's settings are the engine settings merged with the step's
        overrides while the body runs, and are restored afterwards on every
        exit path.

        Returns:
            True if the step passed
        """
        state = step_iterator.state(step)
        self.sub_title = self.get_step_subtitle(step, state)
        await observers.before_step(self, step)

        target = self.target
        original_settings = target.settings
        error: Optional[Exception] = None
        try:
            logger.debug(f"Run step: {step.name}")
            target.settings = self.settings.merged(dict(step.options.settings))
            await call_step_fn(step.fn, target, data_record)
        except Exception as e:
            error = e
        finally:
            target.settings = original_settings

        if asyncio.current_task() in self._abandoned:
            logger.debug(f"Step '{step.name}' settled after being abandoned")
            return False

        if error is not None:
            structured = lift_to_structured_error(error)
            self.last_error = structured
            self.failed = True
            await observers.on_step_error(self, step, structured)
            step_iterator.record(step, StepResult.FAILED)
        else:
            await observers.on_step_passed(self, step)
            step_iterator.record(step, StepResult.PASSED)
            logger.info(f"Completed step '{step.name}'")

        await observers.after_step(self, step)

        if error is None:
            await self.do_step_delay()
        return error is None

    def get_step_subtitle(self, step: Step, state: StepState) -> str:
        """Label for the running step, e.g. ``"2nd loop - 1st recovery"``."""
        parts = []
        repeat = step.options.repeat
        if repeat is not None:
            current = min(state.repeat_iteration + 1, repeat.count)
            parts.append(f"{ordinal(current)} loop")
        if state.recovery_tries:
            parts.append(f"{ordinal(state.recovery_tries)} recovery")
        return " - ".join(parts)

    def _on_recovery_attempt(self, step: Step, state: StepState) -> None:
        self.sub_title = self.get_step_subtitle(step, state)

    async def do_step_delay(self) -> None:
        if self.skipping or self.settings.step_delay <= 0:
            return
        await asyncio.sleep(self.settings.step_delay)

    async def _apply_directives(self, target: ExecutionTarget) -> None:
        settings = self.settings
        if settings.clear_cache:
            await target.clear_cache()
        if settings.clear_cookies:
            await target.clear_cookies()
        if settings.device:
            await target.emulate_device(settings.device)
        if settings.user_agent:
            await target.set_user_agent(settings.user_agent)
        if settings.disable_cache:
            await target.set_cache_disabled(True)
        if settings.extra_http_headers:
            await target.set_extra_http_headers(settings.extra_http_headers)

    async def _run_hooks(
        self,
        phase: str,
        hooks: Sequence[Hook],
        data_record: Any,
    ) -> None:
        """Run a hook sequence, each hook bounded by its wait timeout.

        Raises:
            HookTimeoutError: If a hook exceeds its wait timeout
            HookError: If a hook raises
        """
        if not hooks:
            return
        started, finished = HOOK_EVENTS[phase]
        target = self.target
        original_settings = target.settings
        for hook in hooks:
            self.reporter.test_lifecycle(started, phase)
            target.settings = self.settings.merged({"wait_timeout": hook.wait_timeout})
            try:
                await asyncio.wait_for(
                    call_step_fn(hook.fn, target, data_record),
                    timeout=hook.wait_timeout,
                )
            except asyncio.TimeoutError as e:
                raise HookTimeoutError(
                    f"{phase} hook timed out after {hook.wait_timeout}s",
                    phase,
                    hook.wait_timeout,
                ) from e
            except Exception as e:
                raise HookError(f"{phase} hook failed: {e}", phase, e) from e
            finally:
                target.settings = original_settings
            self.reporter.test_lifecycle(finished, phase)

    async def _run_each_hooks(
        self,
        phase: str,
        hooks: Sequence[Hook],
        data_record: Any,
    ) -> None:
        try:
            await self._run_hooks(phase, hooks, data_record)
        except HookError as e:
            if self.settings.on_hook_error == "fail":
                raise
            logger.warning(f"{e}; marking iteration failed")
            self.failed = True
            self.reporter.test_internal_error(e.message, e)

    async def _after_run_steps(self, step_iterator: StepIterator) -> None:
        await self.interceptor.detach(self.target)
        self.sub_title = ""
        step_iterator.loop_unexecuted_steps(
            lambda step: self._record_summary(
                SummaryStep(step_name=step.name, result=StepResult.UNEXECUTED)
            )
        )

    def _record_summary(self, row: SummaryStep) -> None:
        self.summary_step.append(row)
        if row.result == StepResult.SKIPPED:
            self.reporter.test_lifecycle(LifecycleEvent.STEP_SKIPPED, row.step_name)
        elif row.result == StepResult.UNEXECUTED:
            self.reporter.test_lifecycle(LifecycleEvent.STEP_UNEXECUTED, row.step_name)

    async def will_run_action(self, target: Any, action: str) -> None:
        step = getattr(target, "current_step", None)
        if step is not None and self._observers is not None:
            logger.debug(f"Before action: '{action}()'")
            await self._observers.before_step_action(self, step, action)

    async def did_run_action(self, target: Any, action: str) -> None:
        step = getattr(target, "current_step", None)
        if step is not None and self._observers is not None:
            await self._observers.after_step_action(self, step, action)
