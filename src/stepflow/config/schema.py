"""StepFlow configuration schema models.

This module defines the Pydantic model for validating scenario settings.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_WAIT_TIMEOUT_SECONDS = 30.0


class Settings(BaseModel):
    """Concrete scenario settings.

    Attributes:
        name: Human-readable scenario name
        description: Optional scenario description
        loop_count: Number of iterations to run. Zero or negative means
            unbounded (only ``duration`` or an explicit stop ends the run).
        duration: Wall-clock limit for the whole run in seconds. Zero or
            negative disables the limit.
        step_delay: Pause after each passed step, in seconds
        action_delay: Pause after each atomic target action, in seconds
        wait_timeout: Default timeout for hooks and target waits, in seconds
        tries: Recovery attempts allowed per failed step
        clear_cache: Clear the target's cache at the start of each iteration
        clear_cookies: Clear the target's cookies at the start of each iteration
        device: Device name to emulate
        user_agent: User agent override
        disable_cache: Disable the target's cache
        extra_http_headers: Extra headers sent with every request
        blocked_domains: Domains the request interceptor should block
        incognito: Reopen the target in an incognito context each iteration
        ignore_https_errors: Passed to the target factory at launch
        on_hook_error: How to handle before_each/after_each hook failures:
            - "fail": Abort the iteration (default)
            - "continue": Mark the iteration failed and keep going
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    name: str = Field(default="", description="Scenario name")
    description: str = Field(default="", description="Scenario description")
    loop_count: int = Field(
        default=1,
        description="Iterations to run (<= 0 means unbounded)",
    )
    duration: float = Field(
        default=-1.0,
        description="Run duration limit in seconds (<= 0 disables)",
    )
    step_delay: float = Field(
        default=0.0,
        description="Delay after each passed step",
        ge=0,
    )
    action_delay: float = Field(
        default=0.0,
        description="Delay after each target action",
        ge=0,
    )
    wait_timeout: float = Field(
        default=DEFAULT_WAIT_TIMEOUT_SECONDS,
        description="Default wait timeout in seconds",
        gt=0,
    )
    tries: int = Field(
        default=1,
        description="Recovery attempts per failed step",
        ge=0,
    )
    clear_cache: bool = Field(default=False, description="Clear cache each iteration")
    clear_cookies: bool = Field(default=False, description="Clear cookies each iteration")
    device: Optional[str] = Field(default=None, description="Device to emulate")
    user_agent: Optional[str] = Field(default=None, description="User agent override")
    disable_cache: bool = Field(default=False, description="Disable the target cache")
    extra_http_headers: Optional[dict[str, str]] = Field(
        default=None,
        description="Extra HTTP headers for every request",
    )
    blocked_domains: list[str] = Field(
        default_factory=list,
        description="Domains blocked by the request interceptor",
    )
    incognito: bool = Field(default=False, description="Use an incognito context")
    ignore_https_errors: bool = Field(
        default=False,
        description="Ignore HTTPS errors when launching the target",
    )
    on_hook_error: Literal["fail", "continue"] = Field(
        default="fail",
        description="Policy for before_each/after_each hook failures",
    )

    @field_validator("blocked_domains")
    @classmethod
    def validate_blocked_domains(cls, v: list[str]) -> list[str]:
        """Reject empty domain entries."""
        if any(not d.strip() for d in v):
            raise ValueError("blocked_domains entries must be non-empty")
        return v

    def merged(self, overrides: Optional[dict[str, Any]] = None) -> "Settings":
        """Return a validated copy with ``overrides`` applied.

        Args:
            overrides: Field values taking precedence over this instance

        Returns:
            New Settings instance; this instance is left unchanged
        """
        if not overrides:
            return self.model_copy(deep=True)
        data = self.model_dump()
        data.update(overrides)
        return Settings.model_validate(data)
