"""
Save serialization and revision bookkeeping for one draft record.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")


class SaveMutex:
    """
    Serializes saves by chaining each one onto the previous.

    Every ``run`` call waits for the save queued before it, whether that
    save succeeded or failed, so a failure never wedges the chain.
    """

    def __init__(self):
        self._tail: Optional[asyncio.Future] = None

    @property
    def busy(self) -> bool:
        return self._tail is not None and not self._tail.done()

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T:
        previous = self._tail
        current = asyncio.get_running_loop().create_future()
        self._tail = current
        try:
            if previous is not None:
                await asyncio.shield(previous)
            return await factory()
        finally:
            # A save cancelled while queued still releases only after its predecessor
            if previous is not None and not previous.done():
                previous.add_done_callback(lambda _: current.set_result(None))
            else:
                current.set_result(None)

    async def idle(self) -> None:
        """Wait until every save queued so far has finished."""
        while self.busy:
            await asyncio.shield(self._tail)


class RevisionTracker:
    """
    Last server revision the client adopted.

    One tracker is shared by every field of a record: a review's five
    sections all write against the review's single revision.
    """

    def __init__(self, revision: int = 0):
        self.value = revision

    def adopt(self, revision: int) -> None:
        self.value = revision

    def advance(self, revision: int) -> None:
        """Adopt ``revision`` unless a newer one is already held."""
        self.value = max(self.value, revision)

    def is_stale(self, revision: int) -> bool:
        """True for a server revision older than the one already adopted."""
        return revision < self.value

    def __repr__(self) -> str:
        return f"RevisionTracker({self.value})"
