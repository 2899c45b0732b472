"""StepFlow core: steps, traversal, the scenario engine and the runner."""

from stepflow.core.cancellation import CancellationToken
from stepflow.core.data import DataFeeder
from stepflow.core.looper import Looper
from stepflow.core.step import (
    Hook,
    HookSet,
    RepeatOptions,
    Script,
    Step,
    StepOptions,
    StepResult,
    StepState,
    SummaryStep,
    ordinal,
)
from stepflow.core.target import (
    ActionListener,
    BaseTarget,
    ExecutionTarget,
    Interceptor,
    NullTarget,
)
from stepflow.core.iterator import StepIterator
from stepflow.core.engine import ScenarioEngine
from stepflow.core.runner import PersistentRunner, Runner, RunResult

__all__ = [
    "ActionListener",
    "BaseTarget",
    "CancellationToken",
    "DataFeeder",
    "ExecutionTarget",
    "Hook",
    "HookSet",
    "Interceptor",
    "Looper",
    "NullTarget",
    "PersistentRunner",
    "RepeatOptions",
    "RunResult",
    "Runner",
    "ScenarioEngine",
    "Script",
    "Step",
    "StepIterator",
    "StepOptions",
    "StepResult",
    "StepState",
    "SummaryStep",
    "ordinal",
]
