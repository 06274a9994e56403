"""
Save Debouncer - coalesces bursts of edits into one save per scope.

Each scope (e.g. a tournament tab) holds at most one pending save task.
Scheduling a newer save cancels a pending one that has not started yet;
saves that already started finish, and saves of a scope never overlap.
A superseded generation never runs, so the most recent save always wins.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Set

logger = logging.getLogger(__name__)

SAVE_DEBOUNCE_SECONDS = 0.5


class SaveDebouncer:
    def __init__(self, delay: float = SAVE_DEBOUNCE_SECONDS):
        self.delay = delay
        self.pending: Dict[Hashable, asyncio.Task] = {}  # scope -> latest task
        self._generations: Dict[Hashable, int] = {}
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._started: Set[asyncio.Task] = set()

    def schedule(self, scope: Hashable, save: Callable[[], Awaitable[Any]]) -> asyncio.Task:
        generation = self._generations.get(scope, 0) + 1
        self._generations[scope] = generation

        previous = self.pending.get(scope)
        if previous and not previous.done() and previous not in self._started:
            previous.cancel()

        task = asyncio.create_task(self._run(scope, generation, save))
        self.pending[scope] = task
        return task

    async def _run(self, scope: Hashable, generation: int, save: Callable[[], Awaitable[Any]]):
        task = asyncio.current_task()
        try:
            await asyncio.sleep(self.delay)
            lock = self._locks.setdefault(scope, asyncio.Lock())
            async with lock:
                if self._generations.get(scope) != generation:
                    return None
                self._started.add(task)
                return await save()
        finally:
            self._started.discard(task)
            if self.pending.get(scope) is task:
                del self.pending[scope]

    def is_pending(self, scope: Hashable) -> bool:
        return scope in self.pending

    async def flush(self, scope: Optional[Hashable] = None):
        """Wait for the pending save of one scope (or of every scope)."""
        if scope is None:
            tasks = list(self.pending.values())
        else:
            tasks = [self.pending[scope]] if scope in self.pending else []
        if not tasks:
            return
        await asyncio.wait(tasks)
        for task in tasks:
            if not task.cancelled():
                task.result()

    def cancel(self, scope: Hashable):
        task = self.pending.pop(scope, None)
        if task:
            task.cancel()
            logger.debug("Cancelled pending save for %s", scope)

    def cancel_all(self):
        for scope in list(self.pending):
            self.cancel(scope)
