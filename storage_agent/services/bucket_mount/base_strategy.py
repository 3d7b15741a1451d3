"""Abstract attach strategy - one step of the mount fallback chain."""

from abc import ABC, abstractmethod

from .error_classifier import MountErrorClassifier
from ...models import MountTarget, StrategyOutcome


class StrategyPreconditionError(Exception):
    """Raised by a strategy that cannot run at all in this environment."""


class MountStrategy(ABC):
    """Shared contract: attempt(target) -> StrategyOutcome, never raises."""

    name: str = "strategy"

    def __init__(self, classifier: MountErrorClassifier):
        self._classifier = classifier

    def applies_to(self, target: MountTarget) -> bool:
        """Skip condition. Strategies that need explicit credentials override this."""
        return True

    async def attempt(self, target: MountTarget) -> StrategyOutcome:
        try:
            await self._mount(target)
        except StrategyPreconditionError as e:
            return StrategyOutcome.fatal(str(e))
        except Exception as e:
            return StrategyOutcome.recoverable(self._classifier.classify(e), str(e))
        return StrategyOutcome.succeeded()

    @abstractmethod
    async def _mount(self, target: MountTarget) -> None:
        pass
