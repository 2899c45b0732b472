"""Reporter contract and built-in reporters.

Reporters receive lifecycle events, terminal failures and console output
from scripts. Rendering is up to the implementation; the package ships an
inert reporter and one that writes through :mod:`logging`.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

from stepflow.errors.structured import StructuredError

report_logger = logging.getLogger("stepflow.report")


class LifecycleEvent(str, Enum):
    BEFORE_ALL = "before_all"
    BEFORE_ALL_FINISHED = "before_all_finished"
    AFTER_ALL = "after_all"
    AFTER_ALL_FINISHED = "after_all_finished"
    BEFORE_EACH = "before_each"
    BEFORE_EACH_FINISHED = "before_each_finished"
    AFTER_EACH = "after_each"
    AFTER_EACH_FINISHED = "after_each_finished"
    BEFORE_STEP = "before_step"
    BEFORE_STEP_ACTION = "before_step_action"
    AFTER_STEP_ACTION = "after_step_action"
    STEP_SUCCEEDED = "step_succeeded"
    STEP_FAILED = "step_failed"
    STEP_SKIPPED = "step_skipped"
    STEP_UNEXECUTED = "step_unexecuted"
    AFTER_STEP = "after_step"


CONSOLE_METHODS = ("info", "debug", "warn", "error", "log")


@runtime_checkable
class Reporter(Protocol):
    """Receives lifecycle events and failures from the engine."""

    def test_lifecycle(
        self,
        event: LifecycleEvent,
        label: str,
        subtitle: Optional[str] = None,
        timing: Optional[float] = None,
        error_message: Optional[str] = None,
    ) -> None: ...

    def test_internal_error(self, message: str, error: BaseException) -> None: ...

    def test_assertion_error(self, error: StructuredError) -> None: ...

    def test_step_error(self, error: StructuredError) -> None: ...

    def test_script_console(self, method: str, message: Any = None, *params: Any) -> None: ...


class NullReporter:
    """Reporter that discards everything."""

    def test_lifecycle(
        self,
        event: LifecycleEvent,
        label: str,
        subtitle: Optional[str] = None,
        timing: Optional[float] = None,
        error_message: Optional[str] = None,
    ) -> None:
        return None

    def test_internal_error(self, message: str, error: BaseException) -> None:
        return None

    def test_assertion_error(self, error: StructuredError) -> None:
        return None

    def test_step_error(self, error: StructuredError) -> None:
        return None

    def test_script_console(self, method: str, message: Any = None, *params: Any) -> None:
        return None


class LoggingReporter:
    """Reporter that writes events through the ``stepflow.report`` logger."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or report_logger

    def test_lifecycle(
        self,
        event: LifecycleEvent,
        label: str,
        subtitle: Optional[str] = None,
        timing: Optional[float] = None,
        error_message: Optional[str] = None,
    ) -> None:
        step_name = f"Step '{label}' ({subtitle})" if subtitle else f"Step '{label}'"
        if event == LifecycleEvent.BEFORE_STEP:
            self.logger.info(f"{step_name} is running ...")
        elif event == LifecycleEvent.STEP_SUCCEEDED:
            timing_ms = f" ({timing * 1e3:,.0f}ms)" if timing is not None else ""
            self.logger.info(f"{step_name} passed{timing_ms}")
        elif event == LifecycleEvent.STEP_FAILED:
            self.logger.error(f"{step_name} failed: {error_message or 'step error -> failed'}")
        elif event == LifecycleEvent.STEP_SKIPPED:
            self.logger.info(f"{step_name} skipped")
        elif event == LifecycleEvent.STEP_UNEXECUTED:
            self.logger.info(f"{step_name} is unexecuted")
        elif event in (LifecycleEvent.BEFORE_STEP_ACTION, LifecycleEvent.AFTER_STEP_ACTION):
            self.logger.debug(f"{event.value}: {label}()")
        elif event.value.endswith("_finished"):
            self.logger.debug(f"{label} finished")
        elif event != LifecycleEvent.AFTER_STEP:
            self.logger.debug(f"{label} is running ...")

    def test_internal_error(self, message: str, error: BaseException) -> None:
        self.logger.error(f"stepflow error: {message}: {error}")

    def test_assertion_error(self, error: StructuredError) -> None:
        self.logger.error(f"assertion failed\n{error.to_string()}")

    def test_step_error(self, error: StructuredError) -> None:
        site = error.call_site
        if site:
            self.logger.error(site)

    def test_script_console(self, method: str, message: Any = None, *params: Any) -> None:
        text = " ".join(str(p) for p in (message, *params) if p is not None)
        if method == "debug":
            self.logger.debug(text)
        elif method in ("warn", "warning"):
            self.logger.warning(text)
        elif method == "error":
            self.logger.error(text)
        else:
            self.logger.info(text)
