"""
Process Probe - bounded execution of shell commands.

Every component that needs to look at the container's OS-level state (mount
table, file existence, exit codes) goes through ProcessProbe so polling and
timeouts are handled in one place.
"""

import asyncio
import math
from dataclasses import dataclass
from typing import Dict, Optional

from .base_runner import ProcessHandle, ProcessRunner
from ...logging_config import get_app_logger

DEFAULT_POLL_INTERVAL = 0.2


async def wait_for_process(
    handle: ProcessHandle, timeout: float, interval: float = DEFAULT_POLL_INTERVAL
) -> bool:
    """
    Poll until the process leaves the running state or the attempt cap is hit.

    The cap is ceil(timeout / interval) polls. Returns True if the process
    finished, False if it was still running when the cap was reached.
    """
    max_attempts = max(1, math.ceil(timeout / interval))
    attempts = 0
    while handle.is_running and attempts < max_attempts:
        await asyncio.sleep(interval)
        attempts += 1
    return not handle.is_running


@dataclass(frozen=True)
class ProbeResult:
    command: str
    exit_code: Optional[int]
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.timed_out and self.exit_code == 0


class ProcessProbe:
    """Start a command, wait for it with a bounded timeout, capture its output."""

    def __init__(self, runner: ProcessRunner, poll_interval: float = DEFAULT_POLL_INTERVAL):
        self._runner = runner
        self._poll_interval = poll_interval
        self._logger = get_app_logger("process_probe")

    @property
    def runner(self) -> ProcessRunner:
        return self._runner

    async def run(
        self,
        command: str,
        timeout: float = 2.0,
        env: Optional[Dict[str, str]] = None,
    ) -> ProbeResult:
        """Run command; a command still running at the cap is killed and reported as timed out."""
        handle = await self._runner.start_process(command, env=env)
        finished = await wait_for_process(handle, timeout, self._poll_interval)

        if not finished:
            self._logger.warning(f"Command still running after {timeout}s, giving up: {command[:120]}")
            try:
                await handle.kill()
            except Exception as e:
                self._logger.debug(f"Could not kill timed out process {handle.id}: {e}")

        logs = await handle.get_logs()
        return ProbeResult(
            command=command,
            exit_code=handle.exit_code if finished else None,
            stdout=logs.stdout,
            stderr=logs.stderr,
            timed_out=not finished,
        )
