"""Execution target contract.

The execution target is the external driver that physically performs step
actions (e.g. a driven browser). The engine only needs the surface defined
here: settings it can swap, one-shot iteration directives, a "current step"
slot, and begin/end notifications for every atomic action.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from stepflow.config.schema import Settings

logger = logging.getLogger(__name__)


@runtime_checkable
class ActionListener(Protocol):
    """Receives begin/end notifications for atomic target actions."""

    async def will_run_action(self, target: Any, action: str) -> None: ...

    async def did_run_action(self, target: Any, action: str) -> None: ...


@runtime_checkable
class ExecutionTarget(Protocol):
    """Surface of the execution target consumed by the engine."""

    settings: Settings
    current_step: Any
    action_listener: Optional[ActionListener]

    async def reopen(self, incognito: bool) -> None: ...

    async def clear_cache(self) -> None: ...

    async def clear_cookies(self) -> None: ...

    async def emulate_device(self, device: str) -> None: ...

    async def set_user_agent(self, user_agent: str) -> None: ...

    async def set_cache_disabled(self, disabled: bool) -> None: ...

    async def set_extra_http_headers(self, headers: dict[str, str]) -> None: ...

    async def set_blocked_domains(self, domains: list[str]) -> None: ...

    async def close(self) -> None: ...


class BaseTarget(ABC):
    """Base class for execution target drivers.

    Subclasses implement the directives and wrap each physical action in
    :meth:`perform` so the engine can report it.

    Example:
        ```python
        class PageTarget(BaseTarget):
            async def click(self, selector: str) -> None:
                await self.perform("click", self._page.click, selector)
        ```
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.current_step: Any = None
        self.action_listener: Optional[ActionListener] = None

    async def perform(
        self,
        action: str,
        fn: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Run one atomic action bracketed by listener notifications.

        Applies ``settings.action_delay`` after the action completes.
        """
        if self.action_listener is not None:
            await self.action_listener.will_run_action(self, action)
        try:
            result = fn(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        finally:
            if self.action_listener is not None:
                await self.action_listener.did_run_action(self, action)
        if self.settings.action_delay > 0:
            await asyncio.sleep(self.settings.action_delay)
        return result

    @abstractmethod
    async def reopen(self, incognito: bool) -> None:
        """Open a fresh page/context for a new iteration."""
        ...

    @abstractmethod
    async def clear_cache(self) -> None: ...

    @abstractmethod
    async def clear_cookies(self) -> None: ...

    @abstractmethod
    async def emulate_device(self, device: str) -> None: ...

    @abstractmethod
    async def set_user_agent(self, user_agent: str) -> None: ...

    @abstractmethod
    async def set_cache_disabled(self, disabled: bool) -> None: ...

    @abstractmethod
    async def set_extra_http_headers(self, headers: dict[str, str]) -> None: ...

    @abstractmethod
    async def set_blocked_domains(self, domains: list[str]) -> None: ...

    async def close(self) -> None:
        return None


class NullTarget(BaseTarget):
    """Inert target. Used to evaluate scripts without a live driver."""

    async def reopen(self, incognito: bool) -> None:
        return None

    async def clear_cache(self) -> None:
        return None

    async def clear_cookies(self) -> None:
        return None

    async def emulate_device(self, device: str) -> None:
        return None

    async def set_user_agent(self, user_agent: str) -> None:
        return None

    async def set_cache_disabled(self, disabled: bool) -> None:
        return None

    async def set_extra_http_headers(self, headers: dict[str, str]) -> None:
        return None

    async def set_blocked_domains(self, domains: list[str]) -> None:
        return None


class Interceptor:
    """Network interception collaborator attached for each iteration.

    Interception mechanics belong to the target; this only hands over the
    blocked domain list on attach and withdraws it on detach.
    """

    def __init__(self, blocked_domains: Optional[list[str]] = None) -> None:
        self.blocked_domains = list(blocked_domains or [])
        self.attached = False

    async def attach(self, target: ExecutionTarget) -> None:
        if self.blocked_domains:
            logger.debug(f"Blocking domains: {self.blocked_domains}")
            await target.set_blocked_domains(self.blocked_domains)
        self.attached = True

    async def detach(self, target: ExecutionTarget) -> None:
        if not self.attached:
            return
        if self.blocked_domains:
            await target.set_blocked_domains([])
        self.attached = False


TargetFactory = Callable[[Settings], Awaitable[ExecutionTarget]]
