"""
Per-key debounce timers on the running asyncio loop.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

Callback = Callable[[], Awaitable[None]]


class Debouncer:
    """
    Delay a coroutine callback until ``delay_ms`` passes without a new
    ``schedule`` call for the same key.

    When a timer expires its entry is removed before the callback starts,
    so ``pending(key)`` is already False while the callback runs.
    """

    def __init__(self, delay_ms: int):
        self.delay = delay_ms / 1000
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._callbacks: dict[str, Callback] = {}
        self._running: set[asyncio.Task] = set()

    def schedule(self, key: str, callback: Callback) -> None:
        """(Re)start the timer for ``key``; the latest callback wins."""
        self.cancel(key)
        loop = asyncio.get_running_loop()
        self._callbacks[key] = callback
        self._timers[key] = loop.call_later(self.delay, self._fire, key)

    def _fire(self, key: str) -> None:
        self._timers.pop(key, None)
        callback = self._callbacks.pop(key, None)
        if callback is None:
            return
        task = asyncio.ensure_future(callback())
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    def pending(self, key: str) -> bool:
        return key in self._timers

    def cancel(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()
        self._callbacks.pop(key, None)

    def cancel_all(self) -> None:
        for key in list(self._timers):
            self.cancel(key)

    async def flush(self) -> None:
        """Fire every pending callback now and wait for all running ones."""
        for key in list(self._timers):
            self._timers[key].cancel()
            self._fire(key)
        await self.drain()

    async def drain(self) -> None:
        """Wait for callbacks that have already fired."""
        if self._running:
            await asyncio.gather(*list(self._running))
