"""Structured errors and the step failure classifier.

Every failure raised by a step body is normalized exactly once, where the
engine first observes it, into a :class:`StructuredError` carrying a kind
tag that observers and reporters dispatch on.
"""

from __future__ import annotations

import traceback
from typing import Any, Optional

ASSERTION = "assertion"
EMPTY = "empty"


class StructuredError(Exception):
    """A tagged, normalized representation of a raised failure.

    Attributes:
        message: Human-readable message
        data: Kind-specific payload, always containing ``kind``
        original_error: The exception this error was lifted from
        source: Phase the failure originated in (e.g. ``"test"``)
        stack: Formatted traceback copied from the original error
    """

    structured = True

    def __init__(
        self,
        message: str,
        data: dict[str, Any],
        original_error: Optional[BaseException] = None,
        source: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.data = dict(data)
        self.original_error = original_error
        self.source = source
        self.stack: list[str] = []

    @property
    def kind(self) -> str:
        return self.data.get("kind", EMPTY)

    def copy_stack_from_original_error(self) -> StructuredError:
        if self.original_error is not None:
            self.stack = traceback.format_exception(
                type(self.original_error),
                self.original_error,
                self.original_error.__traceback__,
            )
        return self

    @classmethod
    def wrap_bare_error(
        cls,
        error: BaseException,
        data: dict[str, Any],
        source: str,
    ) -> StructuredError:
        message = str(error) or type(error).__name__
        return cls(message, data, error, source).copy_stack_from_original_error()

    @property
    def call_site(self) -> Optional[str]:
        """Innermost ``file:line`` of the original traceback, if any."""
        if self.original_error is None or self.original_error.__traceback__ is None:
            return None
        frames = traceback.extract_tb(self.original_error.__traceback__)
        if not frames:
            return None
        frame = frames[-1]
        return f"{frame.filename}:{frame.lineno} in {frame.name}"

    def to_detail(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "source": self.source,
            "call_site": self.call_site,
        }

    def to_string(self) -> str:
        site = self.call_site
        if site:
            return f"{self.message}\n    at {site}"
        return self.message


def lift_to_structured_error(error: BaseException) -> StructuredError:
    """Classify an arbitrary failure into a StructuredError.

    Args:
        error: The exception raised by a step body

    Returns:
        ``assertion`` tagged error for assertion failures, the error itself
        when it is already structured, otherwise an ``empty`` tagged wrapper
        with source ``"test"``.
    """
    if type(error).__name__.startswith("AssertionError") or isinstance(error, AssertionError):
        return StructuredError(
            str(error) or "Assertion failed",
            {"kind": ASSERTION},
            error,
        ).copy_stack_from_original_error()
    if isinstance(error, StructuredError):
        return error
    # catch-all, reported as an internal step error further up
    return StructuredError.wrap_bare_error(error, {"kind": EMPTY}, "test")
