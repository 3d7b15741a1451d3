"""
Mount Strategy Chain.

Runs attach strategies strictly in order and stops at the first one the
mount table confirms. What a strategy reports is advisory: attach calls
have been seen to return cleanly without attaching, and to fail after
attaching, so every attempt is followed by a mount-table check.
"""

import time
from typing import List

from .base_strategy import MountStrategy
from .mount_table import LOG_PREFIX, MountTableVerifier
from ...logging_config import get_app_logger
from ...models import FailureReason, MountTarget, OutcomeKind


class MountStrategyChain:
    def __init__(self, verifier: MountTableVerifier, strategies: List[MountStrategy]):
        self._verifier = verifier
        self._strategies = list(strategies)
        self._logger = get_app_logger("bucket_mount")

    @property
    def strategies(self) -> List[MountStrategy]:
        return list(self._strategies)

    async def attach(self, target: MountTarget) -> bool:
        """Attach target and return True only if the mount table confirms it. Never raises."""
        start = time.monotonic()
        self._logger.info(
            f"{LOG_PREFIX} Starting - bucket={target.bucket_name}, path={target.mount_path}, "
            f"endpoint={target.endpoint}, explicitCreds={target.has_credentials}"
        )

        if await self._verifier.is_mounted(target.mount_path, "fast-path"):
            self._logger.info(f"{LOG_PREFIX} Already mounted - no action needed ({self._elapsed(start)})")
            return True

        for strategy in self._strategies:
            if not strategy.applies_to(target):
                self._logger.debug(f"{LOG_PREFIX} Skipping {strategy.name} (no explicit credentials)")
                continue

            outcome = await strategy.attempt(target)

            if outcome.kind == OutcomeKind.SUCCEEDED:
                if await self._verifier.is_mounted(target.mount_path, f"post-{strategy.name}"):
                    self._logger.info(f"{LOG_PREFIX} SUCCESS - {strategy.name} ({self._elapsed(start)})")
                    return True
                self._logger.warning(
                    f"{LOG_PREFIX} {strategy.name} returned OK but mount not detected in mount table"
                )
                continue

            self._log_failure(strategy.name, outcome.reason, outcome.message, start)

            label = (
                f"conflict-recheck-{strategy.name}"
                if outcome.reason == FailureReason.ALREADY_MOUNTED_CONFLICT
                else f"post-{strategy.name}"
            )
            if await self._verifier.is_mounted(target.mount_path, label):
                self._logger.info(
                    f"{LOG_PREFIX} SUCCESS - {strategy.name} reported an error but the bucket is mounted "
                    f"({self._elapsed(start)})"
                )
                return True

            if outcome.is_fatal:
                self._logger.error(f"{LOG_PREFIX} {strategy.name} cannot run here, skipping remaining strategies")
                break

        if await self._verifier.is_mounted(target.mount_path, "final-check"):
            self._logger.info(
                f"{LOG_PREFIX} SUCCESS - mount detected on final check, succeeded despite errors "
                f"({self._elapsed(start)})"
            )
            return True

        self._logger.error(
            f"{LOG_PREFIX} FAILED ({self._elapsed(start)}). Agent will run without persistent storage. "
            "Binding backup is used for sync; set AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY to enable mounting."
        )
        return False

    def _log_failure(self, name: str, reason: FailureReason, message: str, start: float) -> None:
        self._logger.info(
            f"{LOG_PREFIX} {name} failed [{reason.value}]: {message[:200]} ({self._elapsed(start)})"
        )
        if reason == FailureReason.CAPABILITY_UNAVAILABLE:
            self._logger.error(
                f"{LOG_PREFIX} Bucket mount requires FUSE support in the container; "
                "retrying will not help until the environment provides it."
            )
        elif reason == FailureReason.CREDENTIALS_MISSING:
            self._logger.info(
                f"{LOG_PREFIX} Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY "
                "(or STORAGE_ACCESS_KEY_ID / STORAGE_SECRET_ACCESS_KEY)"
            )

    @staticmethod
    def _elapsed(start: float) -> str:
        return f"{int((time.monotonic() - start) * 1000)}ms"
