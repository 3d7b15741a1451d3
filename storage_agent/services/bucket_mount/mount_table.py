"""Mount Table Verifier - the ground truth for "is the bucket attached"."""

import shlex

from ..process import ProcessProbe
from ...logging_config import get_app_logger

LOG_PREFIX = "[bucket-mount]"


class MountTableVerifier:
    """Checks the OS mount table. Read-only, safe to call at any time."""

    def __init__(self, probe: ProcessProbe, fs_signature: str = "s3fs", timeout: float = 2.0):
        self._probe = probe
        self._fs_signature = fs_signature
        self._timeout = timeout
        self._logger = get_app_logger("bucket_mount")

    async def is_mounted(self, path: str, label: str = "check") -> bool:
        """Return True if the mount table lists path with the expected filesystem. Never raises."""
        # Trailing space keeps /data/agent from matching /data/agent2
        pattern = f"{self._fs_signature} on {path} "
        command = f"mount | grep {shlex.quote(pattern)}"
        try:
            result = await self._probe.run(command, timeout=self._timeout)
        except Exception as e:
            self._logger.info(f"{LOG_PREFIX} Mount check ({label}): error - {e}")
            return False

        if result.timed_out:
            self._logger.info(f"{LOG_PREFIX} Mount check ({label}): timed out")
            return False

        mounted = any(pattern in line for line in (result.stdout or "").splitlines())
        self._logger.info(
            f"{LOG_PREFIX} Mount check ({label}): {'MOUNTED' if mounted else 'not mounted'}"
        )
        return mounted
