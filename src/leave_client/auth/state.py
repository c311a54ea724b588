"""Shared refresh-cycle state."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field


@dataclass
class RefreshState:
    """At most one refresh cycle runs at a time.

    Owned by the client that builds the pipeline and shared by reference
    with the coordinator. ``waiters`` holds, in FIFO order, the futures of
    requests that hit a 401 while a cycle was already running.
    """

    in_progress: bool = False
    waiters: list[asyncio.Future[str]] = field(default_factory=list)

    def enqueue(self) -> asyncio.Future[str]:
        waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self.waiters.append(waiter)
        return waiter

    def settle(
        self,
        *,
        token: str | None = None,
        error: BaseException | None = None,
    ) -> int:
        """Resolve or reject every waiter and end the cycle.

        Runs without suspending, so no request can observe
        ``in_progress`` flipped while waiters are still pending.

        Returns:
            Number of waiters settled.
        """
        waiters, self.waiters = self.waiters, []
        for waiter in waiters:
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(token or "")
        self.in_progress = False
        return len(waiters)

    def reset(self) -> None:
        """Drop any queued waiters without settling them (tests only)."""
        for waiter in self.waiters:
            waiter.cancel()
        self.waiters.clear()
        self.in_progress = False
