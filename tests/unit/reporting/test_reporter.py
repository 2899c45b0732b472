"""Tests for reporters and the script console."""

import logging

import pytest

from stepflow import LifecycleEvent, LoggingReporter, NullReporter, Reporter, StructuredError
from stepflow.errors import ASSERTION, EMPTY, lift_to_structured_error
from stepflow.reporting import CONSOLE_METHODS, ScriptConsole

LOGGER = "stepflow.report"


class TestProtocol:
    def test_builtin_reporters_satisfy_protocol(self, reporter) -> None:
        assert isinstance(NullReporter(), Reporter)
        assert isinstance(LoggingReporter(), Reporter)
        assert isinstance(reporter, Reporter)


class TestLoggingReporter:
    """Tests for LoggingReporter rendering."""

    @pytest.mark.parametrize(
        "event,kwargs,expected",
        [
            (LifecycleEvent.BEFORE_STEP, {}, "Step 'login' is running ..."),
            (LifecycleEvent.STEP_SUCCEEDED, {"timing": 0.012}, "Step 'login' passed (12ms)"),
            (LifecycleEvent.STEP_SUCCEEDED, {}, "Step 'login' passed"),
            (
                LifecycleEvent.STEP_FAILED,
                {"error_message": "not found"},
                "Step 'login' failed: not found",
            ),
            (LifecycleEvent.STEP_FAILED, {}, "Step 'login' failed: step error -> failed"),
            (LifecycleEvent.STEP_SKIPPED, {}, "Step 'login' skipped"),
            (LifecycleEvent.STEP_UNEXECUTED, {}, "Step 'login' is unexecuted"),
            (
                LifecycleEvent.BEFORE_STEP,
                {"subtitle": "2nd loop"},
                "Step 'login' (2nd loop) is running ...",
            ),
        ],
    )
    def test_step_events(self, caplog, event, kwargs, expected) -> None:
        with caplog.at_level(logging.DEBUG, logger=LOGGER):
            LoggingReporter().test_lifecycle(event, "login", **kwargs)

        assert caplog.messages == [expected]

    def test_hook_events(self, caplog) -> None:
        reporter = LoggingReporter()
        with caplog.at_level(logging.DEBUG, logger=LOGGER):
            reporter.test_lifecycle(LifecycleEvent.BEFORE_ALL, "before_all")
            reporter.test_lifecycle(LifecycleEvent.BEFORE_ALL_FINISHED, "before_all")
            reporter.test_lifecycle(LifecycleEvent.AFTER_STEP, "login")

        assert caplog.messages == ["before_all is running ...", "before_all finished"]

    def test_failure_channels(self, caplog) -> None:
        reporter = LoggingReporter()
        assertion = StructuredError("expected 3", {"kind": ASSERTION})
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            step_error = lift_to_structured_error(e)

        with caplog.at_level(logging.ERROR, logger=LOGGER):
            reporter.test_internal_error("data exhausted", ValueError("no rows"))
            reporter.test_assertion_error(assertion)
            reporter.test_step_error(step_error)
            reporter.test_step_error(StructuredError("no site", {"kind": EMPTY}))

        assert caplog.messages[0] == "stepflow error: data exhausted: no rows"
        assert caplog.messages[1] == "assertion failed\nexpected 3"
        assert "test_reporter.py" in caplog.messages[2]
        assert len(caplog.messages) == 3

    def test_custom_logger(self, caplog) -> None:
        custom = logging.getLogger("myapp.runs")
        with caplog.at_level(logging.INFO, logger="myapp.runs"):
            LoggingReporter(custom).test_lifecycle(LifecycleEvent.STEP_SKIPPED, "x")

        assert caplog.records[0].name == "myapp.runs"

    def test_console_levels(self, caplog) -> None:
        reporter = LoggingReporter()
        with caplog.at_level(logging.DEBUG, logger=LOGGER):
            reporter.test_script_console("debug", "d", 1)
            reporter.test_script_console("warn", "w")
            reporter.test_script_console("error", "e")
            reporter.test_script_console("log", "l", None, "x")

        assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
            (logging.DEBUG, "d 1"),
            (logging.WARNING, "w"),
            (logging.ERROR, "e"),
            (logging.INFO, "l x"),
        ]


class TestScriptConsole:
    def test_forwards_every_method(self, reporter) -> None:
        console = ScriptConsole(reporter)

        for method in CONSOLE_METHODS:
            getattr(console, method)(f"{method} message", 42)

        assert reporter.console == [
            (method, (f"{method} message", 42)) for method in CONSOLE_METHODS
        ]

    def test_engine_exposes_console(self, engine, reporter) -> None:
        engine.console.info("hello")

        assert reporter.console == [("info", ("hello",))]
