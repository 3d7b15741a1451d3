"""
Sync Orchestrator - copies config and workspace into the bucket.

Mount-based sync mirrors the source directories into the mounted bucket
with rsync and writes a timestamp marker. When mounting is not configured
or does not succeed, the binding backup is used instead.
"""

import posixpath
import re
import shlex

from .binding_backup import TRANSIENT_PATTERNS, BindingBackup
from .source_inspector import NO_CONFIG_ERROR, VERIFY_ERROR, SourceInspector
from ..bucket_mount import BucketMountService
from ..process import ProcessProbe
from ...config import Settings
from ...logging_config import get_app_logger
from ...models import SyncResult

MARKER_NAME = ".last-sync"
ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")

LOG_PREFIX = "[sync]"


class SyncOrchestrator:
    def __init__(
        self,
        settings: Settings,
        mount_service: BucketMountService,
        probe: ProcessProbe,
        inspector: SourceInspector,
        binding_backup: BindingBackup,
    ):
        self._settings = settings
        self._mount_service = mount_service
        self._probe = probe
        self._inspector = inspector
        self._binding_backup = binding_backup
        self._logger = get_app_logger("sync")

    async def sync(self) -> SyncResult:
        if self._mount_service.is_mount_configured():
            if await self._mount_service.attach():
                return await self.sync_via_mount()

        self._logger.info(f"{LOG_PREFIX} Using binding backup (archive + put)")
        return await self._binding_backup.backup()

    @property
    def marker_path(self) -> str:
        return posixpath.join(self._settings.mount_path, MARKER_NAME)

    def build_sync_command(self, config_dir: str) -> str:
        s = self._settings
        q = shlex.quote
        source_config = posixpath.join(s.source_root, config_dir) + "/"
        workspace = posixpath.join(s.source_root, s.workspace_dir) + "/"
        skills = posixpath.join(s.source_root, s.workspace_dir, s.skills_dir) + "/"
        excludes = " ".join(f"--exclude={q(p)}" for p in TRANSIENT_PATTERNS)
        rsync = "rsync -r --no-times --delete"

        steps = [
            # Stale marker from an earlier run must not vouch for this one
            f"rm -f {q(self.marker_path)}",
            f"{rsync} {excludes} {q(source_config)} {q(posixpath.join(s.mount_path, 'config') + '/')}",
            f"{rsync} --exclude={q(s.skills_dir)} {q(workspace)} {q(posixpath.join(s.mount_path, 'workspace') + '/')}",
            f"{rsync} {q(skills)} {q(posixpath.join(s.mount_path, 'skills') + '/')}",
            f"date -Iseconds > {q(self.marker_path)}",
        ]
        return " && ".join(steps)

    async def sync_via_mount(self) -> SyncResult:
        try:
            config_dir = await self._inspector.resolve_config_dir()
        except Exception as e:
            return SyncResult(success=False, error_kind=VERIFY_ERROR, details=str(e))
        if config_dir is None:
            self._logger.warning(f"{LOG_PREFIX} Aborted: {self._inspector.missing_config_details}")
            return SyncResult(
                success=False,
                error_kind=NO_CONFIG_ERROR,
                details=self._inspector.missing_config_details,
            )

        try:
            copy_result = await self._probe.run(
                self.build_sync_command(config_dir),
                timeout=self._settings.copy_timeout_seconds,
            )
            marker_result = await self._probe.run(
                f"cat {shlex.quote(self.marker_path)}",
                timeout=self._settings.file_check_timeout_seconds,
            )
        except Exception as e:
            self._logger.error(f"{LOG_PREFIX} Sync error: {e}")
            return SyncResult(success=False, error_kind="sync error", details=str(e))

        last_sync = (marker_result.stdout or "").strip()
        if last_sync and ISO_DATE_PREFIX.match(last_sync):
            self._logger.info(f"{LOG_PREFIX} Synced to {self._settings.mount_path} at {last_sync}")
            return SyncResult(success=True, last_sync=last_sync)

        details = copy_result.stderr or copy_result.stdout or "No timestamp file created"
        self._logger.error(f"{LOG_PREFIX} Sync failed: {details[:200]}")
        return SyncResult(success=False, error_kind="sync failed", details=details)
