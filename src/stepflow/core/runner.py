"""StepFlow runner.

The Runner owns the execution target and the engine across iterations,
applies the looper's count/duration policy and surfaces terminal failures.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from stepflow.config.schema import Settings
from stepflow.core.cancellation import CancellationToken
from stepflow.core.engine import ScenarioEngine
from stepflow.core.looper import Looper
from stepflow.core.step import Script, SummaryStep, call_step_fn
from stepflow.core.target import ExecutionTarget, TargetFactory
from stepflow.errors import StepFailureError, StepFlowError, StructuredError
from stepflow.observers import ObserverFactory
from stepflow.reporting.reporter import Reporter

logger = logging.getLogger(__name__)

ScriptFactory = Callable[[], Union[Awaitable[Script], Script]]


@dataclass
class RunResult:
    """In-memory outcome of a run.

    Attributes:
        iterations: Iterations started
        failed: True if the run ended on a terminal failure
        error: The terminal failure, if any
        summaries: Summary rows per iteration, in iteration order
    """

    iterations: int = 0
    failed: bool = False
    error: Optional[BaseException] = None
    summaries: list[list[SummaryStep]] = field(default_factory=list)


class Runner:
    """Runs a scenario script for as many iterations as its settings allow.

    Example:
        ```python
        runner = Runner(launch_browser, LoggingReporter(), {"loop_count": 3})
        result = await runner.run(load_script)
        ```
    """

    def __init__(
        self,
        target_factory: TargetFactory,
        reporter: Reporter,
        settings_override: Union[Settings, Mapping[str, Any], None] = None,
        observer_factory: Optional[ObserverFactory] = None,
    ) -> None:
        self.target_factory = target_factory
        self.reporter = reporter
        self.settings_override = settings_override
        self.observer_factory = observer_factory

        self.running = True
        self.looper: Optional[Looper] = None
        self.cancel_token = CancellationToken()
        self.target: Optional[ExecutionTarget] = None

    async def stop(self) -> None:
        """Stop after the current iteration and abandon the running step."""
        self.running = False
        if self.looper is not None:
            self.looper.stop()
        self.cancel_token.cancel()

    def _launch_settings(self, script: Script) -> Settings:
        override = self.settings_override
        if isinstance(override, Settings):
            return script.settings.merged(override.model_dump(exclude_unset=True))
        return script.settings.merged(dict(override or {}))

    async def run(self, script_factory: ScriptFactory) -> RunResult:
        """Build the script, launch the target and run the script on it.

        The target is closed when the run ends.
        """
        script = await call_step_fn(script_factory)
        self.target = await self.target_factory(self._launch_settings(script))
        try:
            return await self.run_script(script, self.target)
        finally:
            await self.target.close()

    async def run_script(self, script: Script, target: ExecutionTarget) -> RunResult:
        """Run ``script`` on an already launched target.

        The script's ``before_run`` is awaited once before the first
        iteration.

        Failures escalated by an iteration end the run: they are logged,
        reported and recorded on the result, and the engine is cancelled.
        Failed iterations are not retried.
        """
        result = RunResult()
        if not self.running:
            return result

        test = ScenarioEngine(target, self.reporter, self.observer_factory)
        self.looper = None
        try:
            settings = test.enqueue_script(script, self.settings_override)

            if settings.name:
                logger.info(f"Loaded test plan: {settings.name}")
                if settings.description:
                    logger.info(settings.description)
            if settings.duration > 0:
                logger.debug(f"Test timeout set to {settings.duration}s")
            logger.debug(f"Test loop count set to {settings.loop_count} iterations")
            logger.debug(f"Settings: {settings.model_dump_json(indent=2)}")

            await test.before_run()

            self.looper = Looper(settings, self.running)

            async def iteration(n: int) -> None:
                logger.info(f"Starting iteration {n}")
                test.reset_summarize_step()
                start_time = time.monotonic()
                try:
                    await test.run_with_cancellation(n, self.cancel_token, self.looper)
                except Exception as e:
                    logger.error(
                        f"[Iteration: {n}] Error in runner loop: {type(e).__name__}: {e}"
                    )
                    raise
                finally:
                    result.summaries.append(list(test.summarize_step()))
                elapsed_ms = (time.monotonic() - start_time) * 1e3
                logger.info(f"Iteration completed in {elapsed_ms:.0f}ms (walltime)")

            result.iterations = await self.looper.run(iteration)
            logger.info(f"Test completed after {result.iterations} iterations")
        except Exception as e:
            result.failed = True
            result.error = e
            result.iterations = self.looper.iterations if self.looper else 0
            self._report_failure(e)
            await test.cancel()
        return result

    def _report_failure(self, error: Exception) -> None:
        structured: Optional[StructuredError] = None
        if isinstance(error, StructuredError):
            structured = error
        elif isinstance(error, StepFailureError) and isinstance(
            error.original_error, StructuredError
        ):
            structured = error.original_error

        if structured is not None:
            logger.error(f"\n{structured.to_string()}")
        elif isinstance(error, StepFlowError):
            logger.error(str(error))
            self.reporter.test_internal_error(str(error), error)
        else:
            logger.error("internal stepflow error")
            self.reporter.test_internal_error("internal stepflow error", error)
        logger.debug("Run failure detail", exc_info=error)


class PersistentRunner(Runner):
    """Keeps one launched target and re-runs the script on request.

    Each rerun builds a fresh script from the factory and runs it on the
    same target. Reruns are queued, never overlapping. :meth:`run` returns
    once :meth:`stop` has been called and the pending reruns have settled.

    Example:
        ```python
        runner = PersistentRunner(launch_browser, LoggingReporter())
        task = asyncio.ensure_future(runner.run(load_script))
        ...
        await runner.rerun()
        await runner.stop()
        results = await task
        ```
    """

    def __init__(
        self,
        target_factory: TargetFactory,
        reporter: Reporter,
        settings_override: Union[Settings, Mapping[str, Any], None] = None,
        observer_factory: Optional[ObserverFactory] = None,
    ) -> None:
        super().__init__(target_factory, reporter, settings_override, observer_factory)
        self.script_factory: Optional[ScriptFactory] = None
        self.results: list[RunResult] = []
        self._stopped = asyncio.Event()
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Future[None]] = set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def rerun(self) -> Optional[asyncio.Future[None]]:
        """Queue a run of a freshly built script on the launched target.

        Returns:
            The queued run, or None if there is no target yet or the runner
            is stopped
        """
        if self.target is None or self.script_factory is None or self.stopped:
            return None
        logger.info("Persistent runner got a command: rerun")
        task = asyncio.ensure_future(self._rerun())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _rerun(self) -> None:
        async with self._lock:
            if self.target is None or self.script_factory is None:
                return
            try:
                script = await call_step_fn(self.script_factory)
                self.results.append(await self.run_script(script, self.target))
            except Exception as e:
                logger.error(f"An error occurred in the script: {type(e).__name__}: {e}")

    async def stop(self) -> None:
        """Stop the running script, if any, and end :meth:`run`."""
        await super().stop()
        self._stopped.set()

    async def run(self, script_factory: ScriptFactory) -> list[RunResult]:  # type: ignore[override]
        """Launch the target, run the script once, then serve reruns.

        Returns:
            The results of every completed run, in order
        """
        self.script_factory = script_factory
        script = await call_step_fn(script_factory)
        self.target = await self.target_factory(self._launch_settings(script))
        try:
            self.rerun()
            await self._stopped.wait()
            if self._pending:
                await asyncio.gather(*self._pending)
        finally:
            await self.target.close()
        return self.results
