"""Pytest fixtures for StepFlow tests."""

from typing import Any, Optional

import pytest

from stepflow import BaseTarget, LifecycleEvent, NullObserver, ScenarioEngine, Settings


class FakeTarget(BaseTarget):
    """Target that records every directive and exposes two actions."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        super().__init__(settings)
        self.calls: list[tuple] = []
        self.closed = False

    async def reopen(self, incognito: bool) -> None:
        self.calls.append(("reopen", incognito))

    async def clear_cache(self) -> None:
        self.calls.append(("clear_cache",))

    async def clear_cookies(self) -> None:
        self.calls.append(("clear_cookies",))

    async def emulate_device(self, device: str) -> None:
        self.calls.append(("emulate_device", device))

    async def set_user_agent(self, user_agent: str) -> None:
        self.calls.append(("set_user_agent", user_agent))

    async def set_cache_disabled(self, disabled: bool) -> None:
        self.calls.append(("set_cache_disabled", disabled))

    async def set_extra_http_headers(self, headers: dict[str, str]) -> None:
        self.calls.append(("set_extra_http_headers", headers))

    async def set_blocked_domains(self, domains: list[str]) -> None:
        self.calls.append(("set_blocked_domains", list(domains)))

    async def close(self) -> None:
        self.closed = True

    async def visit(self, url: str) -> str:
        return await self.perform("visit", lambda: url)

    async def click(self, selector: str) -> None:
        await self.perform("click", lambda: None)

    def directive_names(self) -> list[str]:
        return [c[0] for c in self.calls]


class RecordingReporter:
    """Reporter that keeps every call for assertions."""

    def __init__(self) -> None:
        self.events: list[tuple[LifecycleEvent, str, Optional[str]]] = []
        self.timings: dict[str, Optional[float]] = {}
        self.internal_errors: list[tuple[str, BaseException]] = []
        self.assertion_errors: list[Any] = []
        self.step_errors: list[Any] = []
        self.console: list[tuple[str, tuple]] = []

    def test_lifecycle(self, event, label, subtitle=None, timing=None, error_message=None):
        self.events.append((event, label, subtitle))
        if event in (LifecycleEvent.STEP_SUCCEEDED, LifecycleEvent.STEP_FAILED):
            self.timings[label] = timing

    def test_internal_error(self, message, error):
        self.internal_errors.append((message, error))

    def test_assertion_error(self, error):
        self.assertion_errors.append(error)

    def test_step_error(self, error):
        self.step_errors.append(error)

    def test_script_console(self, method, message=None, *params):
        self.console.append((method, (message, *params)))

    def event_names(self) -> list[str]:
        return [e[0].value for e in self.events]


class RecordingObserver(NullObserver):
    """Observer that records the order of notifications."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    async def before(self, test):
        self.events.append(("before",))

    async def before_step(self, test, step):
        self.events.append(("before_step", step.name))

    async def before_step_action(self, test, step, action):
        self.events.append(("before_step_action", step.name, action))

    async def after_step_action(self, test, step, action):
        self.events.append(("after_step_action", step.name, action))

    async def on_step_passed(self, test, step):
        self.events.append(("passed", step.name))

    async def on_step_error(self, test, step, error):
        self.events.append(("error", step.name, error.kind))

    async def after_step(self, test, step):
        self.events.append(("after_step", step.name))

    async def after(self, test):
        self.events.append(("after",))


@pytest.fixture
def target() -> FakeTarget:
    """Create a fresh FakeTarget."""
    return FakeTarget()


@pytest.fixture
def reporter() -> RecordingReporter:
    """Create a fresh RecordingReporter."""
    return RecordingReporter()


@pytest.fixture
def observer() -> RecordingObserver:
    """Create a fresh RecordingObserver."""
    return RecordingObserver()


@pytest.fixture
def engine(target: FakeTarget, reporter: RecordingReporter, observer: RecordingObserver) -> ScenarioEngine:
    """Create an engine wired to the fake target, reporter and observer."""
    return ScenarioEngine(target, reporter, observer_factory=lambda ctx: [observer])
