"""One-shot cooperative cancellation signal."""

from __future__ import annotations

import asyncio


class CancellationToken:
    """Cooperative, one-shot cancellation signal shared by a run.

    Once requested, cancellation stays requested. Awaiting :meth:`wait`
    resolves as soon as :meth:`cancel` has been called, which lets the
    engine race it against a step body.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancellationToken(requested={self.is_cancellation_requested})"
