"""Scenario building blocks: steps, hooks, scripts and summary rows."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

from stepflow.config.schema import DEFAULT_WAIT_TIMEOUT_SECONDS, Settings
from stepflow.core.data import DataFeeder
from stepflow.errors import ConfigurationError

StepFn = Callable[[Any, Any], Union[Awaitable[Any], Any]]
TargetPredicate = Callable[[Any], Union[Awaitable[bool], bool]]


class StepResult(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    UNEXECUTED = "unexecuted"


@dataclass(frozen=True)
class SummaryStep:
    """One recorded outcome for one step-execution decision."""

    step_name: str
    result: StepResult


@dataclass(frozen=True)
class RepeatOptions:
    """Run a step ``count`` times in a row within one iteration."""

    count: int

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ConfigurationError(f"repeat count must be >= 1, got {self.count}")


@dataclass(frozen=True)
class StepOptions:
    """Gating and override options for a step.

    Attributes:
        skip: Never run; recorded as SKIPPED
        pending: Not implemented yet; recorded as UNEXECUTED
        once: Run on the first iteration only
        predicate: Runtime check against the target; False silently
            suppresses the attempt
        condition: Runtime check against the target; False records SKIPPED
        repeat: Run the step several times in a row
        settings: Settings overrides applied while the step body runs
    """

    skip: bool = False
    pending: bool = False
    once: bool = False
    predicate: Optional[TargetPredicate] = None
    condition: Optional[TargetPredicate] = None
    repeat: Optional[RepeatOptions] = None
    settings: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Step:
    """A named unit of scripted action."""

    name: str
    fn: StepFn
    options: StepOptions = field(default_factory=StepOptions)


@dataclass
class StepState:
    """Per-iteration execution state of a step, keyed by step name.

    Attributes:
        executed: The step reached an outcome in this pass
        recovery_tries: Recovery attempts made after a failure
        repeat_iteration: Repetitions accounted for so far in this pass
    """

    executed: bool = False
    recovery_tries: int = 0
    repeat_iteration: int = 0


@dataclass(frozen=True)
class Hook:
    """A lifecycle function bounded by ``wait_timeout`` seconds."""

    fn: StepFn
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT_SECONDS


@dataclass(frozen=True)
class HookSet:
    before_all: Sequence[Hook] = ()
    after_all: Sequence[Hook] = ()
    before_each: Sequence[Hook] = ()
    after_each: Sequence[Hook] = ()


@dataclass(frozen=True)
class Script:
    """An evaluated scenario: settings, ordered steps, recovery and hooks.

    ``before_run`` is awaited once per run, before the first iteration.

    Raises:
        ConfigurationError: On duplicate step names or recovery entries that
            reference unknown steps
    """

    steps: Sequence[Step]
    settings: Settings = field(default_factory=Settings)
    recovery_steps: Mapping[str, Sequence[Step]] = field(default_factory=dict)
    hooks: HookSet = field(default_factory=HookSet)
    test_data: DataFeeder = field(default_factory=DataFeeder.empty)
    before_run: Optional[Callable[[], Any]] = None

    def __post_init__(self) -> None:
        names = [s.name for s in self.steps]
        if len(names) != len(set(names)):
            duplicates = {n for n in names if names.count(n) > 1}
            raise ConfigurationError(f"Duplicate step names: {duplicates}")
        unknown = [name for name in self.recovery_steps if name not in names]
        if unknown:
            raise ConfigurationError(
                f"Recovery steps reference undefined steps: {unknown}"
            )


async def call_step_fn(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a step, hook or predicate function, awaiting it if async."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def ordinal(n: int) -> str:
    """Return ``n`` with its English ordinal suffix (1st, 2nd, 11th, 23rd)."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"
