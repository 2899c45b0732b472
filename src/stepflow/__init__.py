"""StepFlow: scripted multi-step scenario runner.

Runs scripted scenarios against a controllable execution target, repeating
them across iterations bounded by count and duration, with lifecycle hooks,
gating, failure recovery, cooperative cancellation and observers.
"""

from stepflow.config import ConfigLoader, Settings
from stepflow.core import (
    BaseTarget,
    CancellationToken,
    DataFeeder,
    ExecutionTarget,
    Hook,
    HookSet,
    Interceptor,
    Looper,
    NullTarget,
    PersistentRunner,
    RepeatOptions,
    Runner,
    RunResult,
    ScenarioEngine,
    Script,
    Step,
    StepIterator,
    StepOptions,
    StepResult,
    StepState,
    SummaryStep,
)
from stepflow.errors import (
    ConfigurationError,
    DataExhaustedError,
    HookError,
    HookTimeoutError,
    StepFailureError,
    StepFlowError,
    StructuredError,
    lift_to_structured_error,
)
from stepflow.observers import NullObserver, Observer, ObserverChain, ObserverContext
from stepflow.reporting import LifecycleEvent, LoggingReporter, NullReporter, Reporter

__version__ = "0.1.0"

__all__ = [
    "BaseTarget",
    "CancellationToken",
    "ConfigLoader",
    "ConfigurationError",
    "DataExhaustedError",
    "DataFeeder",
    "ExecutionTarget",
    "Hook",
    "HookError",
    "HookSet",
    "HookTimeoutError",
    "Interceptor",
    "LifecycleEvent",
    "LoggingReporter",
    "Looper",
    "NullObserver",
    "NullReporter",
    "NullTarget",
    "PersistentRunner",
    "Observer",
    "ObserverChain",
    "ObserverContext",
    "RepeatOptions",
    "Reporter",
    "RunResult",
    "Runner",
    "ScenarioEngine",
    "Script",
    "Settings",
    "Step",
    "StepFailureError",
    "StepFlowError",
    "StepIterator",
    "StepOptions",
    "StepResult",
    "StepState",
    "StructuredError",
    "SummaryStep",
    "lift_to_structured_error",
]
