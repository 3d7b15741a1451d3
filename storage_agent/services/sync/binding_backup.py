"""
Binding Backup - sync fallback that needs no filesystem mount.

The source directories are archived inside the container, streamed out as
base64 over stdout, decoded here and uploaded through the object API.
"""

import base64
import binascii
import shlex
from datetime import datetime, timezone
from typing import Optional

from .object_store import ObjectStore
from .source_inspector import NO_CONFIG_ERROR, VERIFY_ERROR, SourceInspector
from ..process import ProcessProbe
from ...config import Settings
from ...logging_config import get_app_logger
from ...models import SyncResult

BACKUP_KEY = "backup/backup.tar.gz"
LAST_SYNC_KEY = "backup/.last-sync"
TRANSIENT_PATTERNS = ("*.lock", "*.log", "*.tmp")

LOG_PREFIX = "[binding-backup]"


class BindingBackup:
    def __init__(
        self,
        settings: Settings,
        probe: ProcessProbe,
        inspector: SourceInspector,
        store: Optional[ObjectStore],
    ):
        self._settings = settings
        self._probe = probe
        self._inspector = inspector
        self._store = store
        self._logger = get_app_logger("sync")

    def build_archive_command(self, config_dir: str) -> str:
        excludes = " ".join(f"--exclude={shlex.quote(p)}" for p in TRANSIENT_PATTERNS)
        return (
            f"tar cz {excludes} -C {shlex.quote(self._settings.source_root)} "
            f"{shlex.quote(config_dir)} {shlex.quote(self._settings.workspace_dir)} "
            f"2>/dev/null | base64 -w0"
        )

    async def backup(self) -> SyncResult:
        if self._store is None:
            return SyncResult(success=False, error_kind="bucket binding not available")

        try:
            config_dir = await self._inspector.resolve_config_dir()
        except Exception as e:
            return SyncResult(success=False, error_kind=VERIFY_ERROR, details=str(e))
        if config_dir is None:
            return SyncResult(
                success=False,
                error_kind=NO_CONFIG_ERROR,
                details=self._inspector.missing_config_details,
            )

        self._logger.info(f"{LOG_PREFIX} Archiving {config_dir} and {self._settings.workspace_dir}...")
        try:
            result = await self._probe.run(
                self.build_archive_command(config_dir),
                timeout=self._settings.archive_timeout_seconds,
            )
            encoded = (result.stdout or "").strip()
            if not encoded:
                return SyncResult(
                    success=False,
                    error_kind="backup produced no output",
                    details=(result.stderr or "").strip() or "tar may have failed (check container logs)",
                )

            try:
                body = base64.b64decode(encoded, validate=True)
            except binascii.Error as e:
                return SyncResult(success=False, error_kind="backup output not decodable", details=str(e))
            if not body:
                return SyncResult(success=False, error_kind="backup produced no output")

            timestamp = datetime.now(timezone.utc).isoformat()
            await self._store.put(
                BACKUP_KEY,
                body,
                content_type="application/gzip",
                metadata={"last-sync": timestamp},
            )
            await self._store.put(LAST_SYNC_KEY, timestamp, content_type="text/plain")
        except Exception as e:
            self._logger.error(f"{LOG_PREFIX} Upload failed: {e}")
            return SyncResult(success=False, error_kind="binding backup failed", details=str(e))

        self._logger.info(f"{LOG_PREFIX} Backup uploaded: {BACKUP_KEY} ({len(body)} bytes)")
        return SyncResult(success=True, last_sync=timestamp)
