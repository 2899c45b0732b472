"""StepFlow error module.

Exports the exception hierarchy for use throughout the package.
"""

from stepflow.errors.exceptions import (
    ConfigurationError,
    DataExhaustedError,
    HookError,
    HookTimeoutError,
    StepFailureError,
    StepFlowError,
)
from stepflow.errors.structured import (
    ASSERTION,
    EMPTY,
    StructuredError,
    lift_to_structured_error,
)

__all__ = [
    "ASSERTION",
    "EMPTY",
    "StepFlowError",
    "ConfigurationError",
    "DataExhaustedError",
    "HookError",
    "HookTimeoutError",
    "StepFailureError",
    "StructuredError",
    "lift_to_structured_error",
]
