import asyncio
from typing import Any, Awaitable, Callable, Dict


class SingleFlight:
    """
    Coalesces concurrent calls that share a key.

    The first caller for a key starts the work; callers arriving while it is in
    flight await the same task and receive the same result or exception. The
    key is released as soon as the task finishes.
    """

    def __init__(self):
        self._calls: Dict[str, asyncio.Task] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._calls

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._calls.get(key) is task:
            del self._calls[key]

    async def do(self, key: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        task = self._calls.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._calls[key] = task
            task.add_done_callback(lambda t: self._forget(key, t))

        # A cancelled waiter must not cancel the work other waiters share
        return await asyncio.shield(task)
