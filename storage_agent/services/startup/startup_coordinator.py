"""Startup Coordinator - single-flight wrapper around the gateway startup sequence."""

from typing import Awaitable, Callable, Optional, TypeVar

from .failure_ledger import StartupFailureLedger
from ..coordination import SingleFlightGuard
from ...logging_config import get_app_logger
from ...models import StartupFailure

T = TypeVar("T")

STARTUP_KEY = "startup"


class StartupCoordinator:
    """
    Deduplicates concurrent startup attempts and records terminal failures.

    A fresh attempt clears the ledger; callers joining an in-flight attempt
    leave it alone. A failure is recorded once per attempt and rethrown to
    every waiter.
    """

    def __init__(self, ledger: StartupFailureLedger, guard: Optional[SingleFlightGuard] = None):
        self._ledger = ledger
        self._guard = guard or SingleFlightGuard("startup")
        self._logger = get_app_logger("startup")

    @property
    def guard(self) -> SingleFlightGuard:
        return self._guard

    async def run_exclusive(self, fn: Callable[[], Awaitable[T]]) -> T:
        if not self._guard.is_in_flight(STARTUP_KEY):
            self._ledger.clear()

        async def attempt() -> T:
            try:
                return await fn()
            except Exception as e:
                failure = self._ledger.record(str(e))
                self._logger.error(f"Startup failed: {failure.message} (hint: {failure.hint})")
                raise

        return await self._guard.run(STARTUP_KEY, attempt)

    def is_startup_in_progress(self) -> bool:
        return self._guard.is_in_flight(STARTUP_KEY)

    def current_startup_failure(self) -> Optional[StartupFailure]:
        return self._ledger.current()
