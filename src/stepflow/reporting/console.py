"""Console passthrough for scenario scripts."""

from __future__ import annotations

from typing import Any

from stepflow.reporting.reporter import Reporter


class ScriptConsole:
    """Console-style logging for step bodies, forwarded to the reporter."""

    def __init__(self, reporter: Reporter) -> None:
        self.reporter = reporter

    def info(self, message: Any = None, *params: Any) -> None:
        self.reporter.test_script_console("info", message, *params)

    def debug(self, message: Any = None, *params: Any) -> None:
        self.reporter.test_script_console("debug", message, *params)

    def warn(self, message: Any = None, *params: Any) -> None:
        self.reporter.test_script_console("warn", message, *params)

    def error(self, message: Any = None, *params: Any) -> None:
        self.reporter.test_script_console("error", message, *params)

    def log(self, message: Any = None, *params: Any) -> None:
        self.reporter.test_script_console("log", message, *params)
