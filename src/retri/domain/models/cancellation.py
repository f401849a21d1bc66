"""Cancellation sources consumed by the retry engine"""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class CancellationSource(Protocol):
    """Anything that can be polled and awaited for cancellation.

    ``is_cancelled`` answers "already signaled?", ``wait()`` returns once the
    source is signaled.
    """

    @property
    def is_cancelled(self) -> bool: ...

    async def wait(self) -> None: ...


class CancellationToken:
    """Simple one-shot cancellation source backed by an ``asyncio.Event``"""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        """Signal cancellation; later calls keep the first reason.

        The reason is carried by the resulting ``RetryCancelledError``.
        """
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()
