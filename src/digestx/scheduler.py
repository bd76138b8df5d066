"""Run-later primitive used by eval_async() and apply_async().

A scheduler is any callable taking a zero-argument callback and arranging
for it to run on a later turn of the same thread, FIFO relative to other
callbacks scheduled the same way.

Resolution order for a scope: the scheduler passed to ``Scope(...)``, then
the process-wide one installed with set_scheduler(), then the running
asyncio loop's call_soon.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Callable

from digestx.errors import SchedulerError

logger = logging.getLogger("digestx.scheduler")

Callback = Callable[[], None]
Scheduler = Callable[[Callback], object]

_scheduler: Scheduler | None = None


def set_scheduler(scheduler: Scheduler | None) -> None:
    """Install the default run-later callable for every scope.

    Call once at startup, e.g. with an event loop's call_soon:
        digestx.set_scheduler(loop.call_soon)

    Pass None to fall back to the running asyncio loop again.
    """
    global _scheduler
    _scheduler = scheduler


def get_scheduler() -> Scheduler | None:
    return _scheduler


def call_later(callback: Callback) -> None:
    """Run callback on a later turn using the default scheduler."""
    if _scheduler is not None:
        _scheduler(callback)
        return

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        raise SchedulerError(
            "no scheduler configured and no asyncio loop running; "
            "pass Scope(scheduler=...) or call set_scheduler()"
        ) from None
    loop.call_soon(callback)


class TurnQueue:
    """FIFO scheduler whose turns run when you call run().

    Useful for embedding in a host loop that has its own idle hook, and in
    tests that need to control exactly when deferred work happens:

        turns = TurnQueue()
        scope = Scope(scheduler=turns)
        scope.eval_async(lambda s: ...)
        turns.run()
    """

    def __init__(self) -> None:
        self._turns: deque[Callback] = deque()

    def __call__(self, callback: Callback) -> None:
        self._turns.append(callback)

    def run(self) -> int:
        """Run queued turns, including ones queued meanwhile. Returns the count."""
        count = 0
        while self._turns:
            callback = self._turns.popleft()
            callback()
            count += 1
        if count:
            logger.debug("Ran %d deferred turns", count)
        return count

    def __len__(self) -> int:
        return len(self._turns)

    def __repr__(self) -> str:
        return f"TurnQueue({len(self._turns)} pending)"
