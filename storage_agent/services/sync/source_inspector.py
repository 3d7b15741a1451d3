"""Sanity check of the sync source before anything is copied or archived."""

import posixpath
import shlex
from typing import Optional

from ..process import ProcessProbe
from ...config import Settings

NO_CONFIG_ERROR = "no config file found"
VERIFY_ERROR = "failed to verify source files"


class SourceInspector:
    """Finds which configuration directory (current or legacy) holds a config file."""

    def __init__(self, settings: Settings, probe: ProcessProbe):
        self._settings = settings
        self._probe = probe

    @property
    def missing_config_details(self) -> str:
        return (
            f"Neither {self._settings.config_file} nor {self._settings.legacy_config_file} "
            f"found under {self._settings.source_root}."
        )

    async def resolve_config_dir(self) -> Optional[str]:
        """
        Return the config directory name relative to source_root, or None.

        The current layout is preferred over the legacy one. Probe errors
        propagate so callers can report them separately from a missing file.
        """
        candidates = (
            (self._settings.config_dir, self._settings.config_file),
            (self._settings.legacy_config_dir, self._settings.legacy_config_file),
        )
        for config_dir, config_file in candidates:
            path = posixpath.join(self._settings.source_root, config_dir, config_file)
            result = await self._probe.run(
                f"test -f {shlex.quote(path)}",
                timeout=self._settings.file_check_timeout_seconds,
            )
            if result.succeeded:
                return config_dir
        return None
