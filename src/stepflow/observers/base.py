"""Observer capability interface and the ordered observer chain."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, Sequence, runtime_checkable

from stepflow.core.step import Step
from stepflow.errors.structured import StructuredError

if TYPE_CHECKING:
    from stepflow.core.engine import ScenarioEngine

logger = logging.getLogger(__name__)


@runtime_checkable
class Observer(Protocol):
    """Callback protocol for scenario lifecycle transitions."""

    async def before(self, test: ScenarioEngine) -> None: ...

    async def before_step(self, test: ScenarioEngine, step: Step) -> None: ...

    async def before_step_action(self, test: ScenarioEngine, step: Step, action: str) -> None: ...

    async def after_step_action(self, test: ScenarioEngine, step: Step, action: str) -> None: ...

    async def after_step(self, test: ScenarioEngine, step: Step) -> None: ...

    async def on_step_passed(self, test: ScenarioEngine, step: Step) -> None: ...

    async def on_step_error(
        self, test: ScenarioEngine, step: Step, error: StructuredError
    ) -> None: ...

    async def after(self, test: ScenarioEngine) -> None: ...


class NullObserver:
    """Inert observer. Subclass it and override the events you need."""

    async def before(self, test: ScenarioEngine) -> None:
        return None

    async def before_step(self, test: ScenarioEngine, step: Step) -> None:
        return None

    async def before_step_action(self, test: ScenarioEngine, step: Step, action: str) -> None:
        return None

    async def after_step_action(self, test: ScenarioEngine, step: Step, action: str) -> None:
        return None

    async def after_step(self, test: ScenarioEngine, step: Step) -> None:
        return None

    async def on_step_passed(self, test: ScenarioEngine, step: Step) -> None:
        return None

    async def on_step_error(
        self, test: ScenarioEngine, step: Step, error: StructuredError
    ) -> None:
        return None

    async def after(self, test: ScenarioEngine) -> None:
        return None


@dataclass
class ActionRecord:
    """One atomic target action correlated with the step that issued it."""

    step_name: str
    action: str
    duration: Optional[float] = None


@dataclass
class ObserverContext:
    """State shared by the observers of one iteration."""

    step_started_at: Optional[float] = None
    step_duration: Optional[float] = None
    action_started_at: Optional[float] = None
    last_action_duration: Optional[float] = None
    actions: list[ActionRecord] = field(default_factory=list)

    def actions_for(self, step_name: str) -> list[ActionRecord]:
        return [a for a in self.actions if a.step_name == step_name]


ObserverFactory = Callable[[ObserverContext], Sequence[Observer]]


class ObserverChain:
    """Ordered list of observers, each notified once per event.

    Observers are invoked in registration order. An observer that raises is
    logged and does not keep later observers from receiving the event.
    """

    def __init__(self, observers: Sequence[Any] = ()) -> None:
        self.observers = list(observers)

    def __len__(self) -> int:
        return len(self.observers)

    async def notify(self, method: str, *args: Any) -> None:
        for observer in self.observers:
            fn = getattr(observer, method, None)
            if fn is None:
                continue
            try:
                await fn(*args)
            except Exception as e:
                logger.warning(
                    f"Observer {type(observer).__name__}.{method} failed: {e}"
                )

    async def before(self, test: ScenarioEngine) -> None:
        await self.notify("before", test)

    async def before_step(self, test: ScenarioEngine, step: Step) -> None:
        await self.notify("before_step", test, step)

    async def before_step_action(self, test: ScenarioEngine, step: Step, action: str) -> None:
        await self.notify("before_step_action", test, step, action)

    async def after_step_action(self, test: ScenarioEngine, step: Step, action: str) -> None:
        await self.notify("after_step_action", test, step, action)

    async def after_step(self, test: ScenarioEngine, step: Step) -> None:
        await self.notify("after_step", test, step)

    async def on_step_passed(self, test: ScenarioEngine, step: Step) -> None:
        await self.notify("on_step_passed", test, step)

    async def on_step_error(
        self, test: ScenarioEngine, step: Step, error: StructuredError
    ) -> None:
        await self.notify("on_step_error", test, step, error)

    async def after(self, test: ScenarioEngine) -> None:
        await self.notify("after", test)
