"""Bucket Mount Service - guarded entry point for attaching persistent storage."""

from typing import Optional

from .mount_table import LOG_PREFIX, MountTableVerifier
from .strategy_chain import MountStrategyChain
from ..coordination import SingleFlightGuard
from ...config import Settings
from ...logging_config import get_app_logger
from ...models import BucketCredentials, MountTarget

MOUNT_KEY = "bucket-mount"


def build_mount_target(settings: Settings) -> Optional[MountTarget]:
    """Build a fresh MountTarget from settings, or None if no account is configured."""
    if not settings.storage_account_id:
        return None

    credentials = None
    if settings.explicit_credentials:
        access_key_id, secret_access_key = settings.explicit_credentials
        credentials = BucketCredentials(
            access_key_id=access_key_id, secret_access_key=secret_access_key
        )

    return MountTarget(
        bucket_name=settings.storage_bucket_name,
        mount_path=settings.mount_path,
        endpoint=settings.endpoint,
        credentials=credentials,
    )


class BucketMountService:
    """Orchestrates bucket attachment. Concurrent callers share one attempt."""

    def __init__(
        self,
        settings: Settings,
        verifier: MountTableVerifier,
        chain: MountStrategyChain,
        guard: Optional[SingleFlightGuard] = None,
    ):
        self._settings = settings
        self._verifier = verifier
        self._chain = chain
        self._guard = guard or SingleFlightGuard("mount")
        self._logger = get_app_logger("bucket_mount")

    @property
    def guard(self) -> SingleFlightGuard:
        return self._guard

    def is_mount_configured(self) -> bool:
        return bool(self._settings.storage_account_id)

    async def attach(self) -> bool:
        """Ensure the bucket is attached. Returns False on any failure, never raises."""
        target = build_mount_target(self._settings)
        if target is None:
            self._logger.info(f"{LOG_PREFIX} Skipped - STORAGE_ACCOUNT_ID not set")
            return False

        if self._guard.is_in_flight(MOUNT_KEY):
            self._logger.info(f"{LOG_PREFIX} Waiting for in-flight mount attempt...")
        return await self._guard.run(MOUNT_KEY, lambda: self._chain.attach(target))

    async def is_mounted(self, label: str = "status") -> bool:
        """Read-only check; never starts an attach attempt."""
        return await self._verifier.is_mounted(self._settings.mount_path, label)

    async def get_mount_info(self) -> dict:
        return {
            "configured": self.is_mount_configured(),
            "bucket": self._settings.storage_bucket_name,
            "mount_path": self._settings.mount_path,
            "explicit_credentials": self._settings.has_explicit_credentials,
            "mounted": await self.is_mounted("status"),
            "attach_in_progress": self._guard.is_in_flight(MOUNT_KEY),
        }
