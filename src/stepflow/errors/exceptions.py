"""StepFlow exception hierarchy."""

from __future__ import annotations

from typing import Any, Optional


class StepFlowError(Exception):
    """Base class for all StepFlow errors.

    Attributes:
        message: Human-readable error message
        details: Optional list of detail strings
    """

    def __init__(self, message: str, details: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {'; '.join(self.details)}"
        return self.message


class ConfigurationError(StepFlowError):
    """Raised when settings or a script definition are invalid."""


class DataExhaustedError(StepFlowError):
    """Raised when the script's data feeder has no more records."""

    def __init__(self, message: str = "Test data exhausted, consider making it circular?") -> None:
        super().__init__(message)


class HookError(StepFlowError):
    """Raised when a lifecycle hook fails.

    Attributes:
        phase: Hook phase name (before_all, before_each, ...)
        original_error: The exception raised by the hook, if any
    """

    def __init__(
        self,
        message: str,
        phase: str,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.phase = phase
        self.original_error = original_error


class HookTimeoutError(HookError):
    """Raised when a lifecycle hook exceeds its wait timeout."""

    def __init__(self, message: str, phase: str, timeout: float) -> None:
        super().__init__(message, phase)
        self.timeout = timeout


class StepFailureError(StepFlowError):
    """Raised when a step fails and cannot be recovered.

    Unwinds the whole step loop of the current iteration.
    """

    def __init__(
        self,
        step: str,
        message: str,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(f"Step '{step}' failed: {message}")
        self.step = step
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "message": self.message,
            "original_error": repr(self.original_error) if self.original_error else None,
        }
