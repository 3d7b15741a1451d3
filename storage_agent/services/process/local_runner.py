"""Local process runner built on asyncio subprocesses."""

import asyncio
import logging
import os
import signal
from itertools import count
from typing import Dict, List, Optional, Set, Tuple

from .base_runner import ProcessHandle, ProcessLogs, ProcessRunner

_ids = count(1)

PROCESS_TABLE_COMMAND = ("ps", "-eo", "pid=,sid=,args=")


class LocalProcessHandle(ProcessHandle):
    """Wraps an asyncio subprocess; output is drained by a background task."""

    def __init__(self, command: str, process: asyncio.subprocess.Process):
        self.id = f"proc-{next(_ids)}"
        self.command = command
        self._process = process
        self._stdout = b""
        self._stderr = b""
        self._killed = False
        self._collector = asyncio.create_task(self._collect())

    async def _collect(self) -> None:
        self._stdout, self._stderr = await self._process.communicate()

    @property
    def status(self) -> str:
        if not self._collector.done():
            return "running"
        if self._killed:
            return "killed"
        return "completed" if self._process.returncode == 0 else "failed"

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def exit_code(self) -> Optional[int]:
        return self._process.returncode

    async def get_logs(self) -> ProcessLogs:
        return ProcessLogs(
            stdout=self._stdout.decode(errors="replace"),
            stderr=self._stderr.decode(errors="replace"),
        )

    async def kill(self) -> None:
        if self._collector.done():
            return
        self._killed = True
        try:
            # Kill the whole session: the shell may have forked children holding the pipes
            os.killpg(self._process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        await self._collector


class AdoptedProcessHandle(ProcessHandle):
    """
    A process found in the system process table that this runner did not spawn,
    for example a gateway that outlived a previous agent. Its output was never
    captured, so logs are always empty.
    """

    def __init__(self, pid: int, command: str):
        self.id = f"pid-{pid}"
        self.command = command
        self.pid = pid
        self._killed = False

    def _alive(self) -> bool:
        try:
            os.kill(self.pid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            # Exists but owned by another user
            pass
        return True

    @property
    def status(self) -> str:
        if self._killed:
            return "killed"
        return "running" if self._alive() else "completed"

    @property
    def exit_code(self) -> Optional[int]:
        return None

    async def get_logs(self) -> ProcessLogs:
        return ProcessLogs()

    async def kill(self) -> None:
        self._killed = True
        try:
            os.kill(self.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass


def parse_process_table(text: str, exclude: Set[int]) -> List[Tuple[int, str]]:
    """Parse `ps -eo pid=,sid=,args=` output, skipping pids or sessions in exclude."""
    entries = []
    for line in text.splitlines():
        parts = line.split(None, 2)
        if len(parts) < 3 or not parts[0].isdigit() or not parts[1].isdigit():
            continue
        pid, sid = int(parts[0]), int(parts[1])
        if pid in exclude or sid in exclude:
            continue
        entries.append((pid, parts[2]))
    return entries


class LocalProcessRunner(ProcessRunner):
    """
    Runs commands through /bin/sh and remembers every handle it spawned.

    `list_processes` also adopts running processes from the system process
    table, so a gateway started before an agent restart is still found.
    """

    def __init__(self, scan_timeout: float = 2.0):
        self._processes: List[LocalProcessHandle] = []
        self._scan_timeout = scan_timeout

    async def start_process(
        self, command: str, env: Optional[Dict[str, str]] = None
    ) -> ProcessHandle:
        process_env = None
        if env:
            process_env = {**os.environ, **env}

        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=process_env,
            start_new_session=True,
        )
        handle = LocalProcessHandle(command, process)
        self._processes.append(handle)
        logging.debug(f"Started {handle.id}: {command}")
        return handle

    async def list_processes(self) -> List[ProcessHandle]:
        # Finished handles are dropped so the registry does not grow unbounded
        self._processes = [p for p in self._processes if p.is_running]
        exclude = {os.getpid()} | {p.pid for p in self._processes}
        adopted = [
            AdoptedProcessHandle(pid, command)
            for pid, command in parse_process_table(await self._read_process_table(), exclude)
        ]
        return [*self._processes, *adopted]

    async def _read_process_table(self) -> str:
        """Return raw `ps` output, or "" when the table cannot be read."""
        try:
            process = await asyncio.create_subprocess_exec(
                *PROCESS_TABLE_COMMAND,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logging.debug(f"Process table unavailable: {e}")
            return ""
        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self._scan_timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logging.debug("Process table scan timed out")
            return ""
        return stdout.decode(errors="replace")
