"""
Single-flight guard.

At most one execution per key is in flight. Callers arriving while it runs
await the same task and receive the same result or exception. The slot is
cleared as soon as the task settles, so nothing (including failures) is
cached beyond the in-flight window.
"""

import asyncio
from typing import Awaitable, Callable, Dict, TypeVar

from ...logging_config import get_app_logger

T = TypeVar("T")


class SingleFlightGuard:
    """Keyed registry of in-flight tasks owned by a long-lived coordinator."""

    def __init__(self, name: str = "single-flight"):
        self._name = name
        self._inflight: Dict[str, asyncio.Task] = {}
        self._logger = get_app_logger("single_flight")

    async def run(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(key)
        if task is not None:
            self._logger.debug(f"[{self._name}] joining in-flight '{key}'")
        else:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            # Registered before any waiter so the slot is cleared before results propagate
            task.add_done_callback(lambda t, k=key: self._clear(k, t))

        # shield: a waiter that gets cancelled must not cancel the shared attempt
        return await asyncio.shield(task)

    def _clear(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the exception as retrieved; waiters still receive it through shield
        if not task.cancelled():
            task.exception()

    def is_in_flight(self, key: str) -> bool:
        return key in self._inflight

    def reset(self, key: str) -> None:
        """Forget the slot for key. The orphaned task still runs to completion."""
        self._inflight.pop(key, None)

    def reset_all(self) -> None:
        self._inflight.clear()
