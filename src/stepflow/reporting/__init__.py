"""StepFlow reporting."""

from stepflow.reporting.console import ScriptConsole
from stepflow.reporting.reporter import (
    CONSOLE_METHODS,
    LifecycleEvent,
    LoggingReporter,
    NullReporter,
    Reporter,
)

__all__ = [
    "CONSOLE_METHODS",
    "LifecycleEvent",
    "LoggingReporter",
    "NullReporter",
    "Reporter",
    "ScriptConsole",
]
