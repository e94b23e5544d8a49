"""
Debounced customer-name lookup.

Keystrokes arrive faster than lookups are worth running; only the last value
seen in each idle window is searched.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DebouncedSearch(Generic[T]):
    """Run ``search(term)`` once input has been idle for ``delay`` seconds, then ``deliver`` the result.

    A new ``submit`` cancels a lookup that is still waiting out its idle
    window. A lookup that already started is allowed to finish (it may be
    using a shared DB session) and the next one runs after it. ``cancel``
    drops everything and is called when the owning connection goes away.
    """

    def __init__(
        self,
        search: Callable[[str], Awaitable[T]],
        deliver: Callable[[T], Awaitable[None]],
        delay: float = 0.3,
    ) -> None:
        self._search = search
        self._deliver = deliver
        self._delay = delay
        self._pending: Optional[asyncio.Task] = None
        self._running: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return any(t is not None and not t.done() for t in (self._pending, self._running))

    def submit(self, term: str) -> None:
        if self._pending is not None and not self._pending.done() and self._pending is not self._running:
            self._pending.cancel()
        self._pending = asyncio.create_task(self._run(term, self._running))

    def cancel(self) -> None:
        for task in (self._pending, self._running):
            if task is not None and not task.done():
                task.cancel()
        self._pending = None
        self._running = None

    async def wait(self) -> None:
        """Wait until the most recently submitted lookup has finished or been cancelled."""
        if self._pending is not None:
            await asyncio.wait({self._pending})

    async def _run(self, term: str, previous: Optional[asyncio.Task]) -> None:
        await asyncio.sleep(self._delay)
        if previous is not None and not previous.done():
            await asyncio.wait({previous})
        self._running = asyncio.current_task()
        try:
            try:
                result = await self._search(term)
            except Exception:
                logger.exception("Customer lookup failed for %r", term)
                return
            await self._deliver(result)
        finally:
            if self._running is asyncio.current_task():
                self._running = None
