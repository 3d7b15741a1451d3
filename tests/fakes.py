"""
Test doubles for the process runner.

FakeProcessRunner answers commands from substring rules and simulates the
mount table through its `mounted` flag.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

from storage_agent.config import Settings
from storage_agent.services.process import ProcessHandle, ProcessLogs, ProcessRunner

MOUNT_LINE = "s3fs on /data/agent type fuse.s3fs (rw,nosuid,nodev)\n"


def make_settings(**overrides) -> Settings:
    """Settings isolated from the developer's environment and settings.env."""
    values = dict(
        storage_account_id="test-account",
        storage_bucket_name="agent-data",
        storage_access_key_id="",
        storage_secret_access_key="",
        aws_access_key_id="",
        aws_secret_access_key="",
        mount_path="/data/agent",
        anthropic_api_key="",
        openai_api_key="",
        ai_gateway_api_key="",
        poll_interval_seconds=0.01,
        probe_timeout_seconds=0.05,
        file_check_timeout_seconds=0.05,
        copy_timeout_seconds=0.05,
        archive_timeout_seconds=0.05,
        mount_timeout_seconds=0.05,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@dataclass
class FakeResult:
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    hang: bool = False


class FakeProcessHandle(ProcessHandle):
    def __init__(self, pid: int, command: str, result: FakeResult):
        self.id = f"fake-{pid}"
        self.command = command
        self._result = result
        self._killed = False

    @property
    def status(self) -> str:
        if self._killed:
            return "killed"
        if self._result.hang:
            return "running"
        return "completed" if self._result.exit_code == 0 else "failed"

    @property
    def exit_code(self) -> Optional[int]:
        if self._result.hang or self._killed:
            return None
        return self._result.exit_code

    async def get_logs(self) -> ProcessLogs:
        return ProcessLogs(stdout=self._result.stdout, stderr=self._result.stderr)

    async def kill(self) -> None:
        self._killed = True


Responder = Union[FakeResult, Callable[[str], FakeResult]]


class FakeProcessRunner(ProcessRunner):
    def __init__(self, mounted: bool = False):
        self.mounted = mounted
        # Optional scripted answers for successive mount-table checks; the last one sticks
        self.mount_sequence: List[bool] = []
        self.commands: List[str] = []
        self.envs: List[Optional[Dict[str, str]]] = []
        self.handles: List[FakeProcessHandle] = []
        self._rules: List[tuple] = []

    def on(self, substring: str, responder: Responder) -> "FakeProcessRunner":
        """First matching rule wins; unmatched commands succeed with no output."""
        self._rules.append((substring, responder))
        return self

    def commands_matching(self, substring: str) -> List[str]:
        return [c for c in self.commands if substring in c]

    def _respond(self, command: str) -> FakeResult:
        if command.startswith("mount | grep"):
            if self.mount_sequence:
                self.mounted = self.mount_sequence.pop(0) if len(self.mount_sequence) > 1 else self.mount_sequence[0]
            return FakeResult(stdout=MOUNT_LINE if self.mounted else "", exit_code=0 if self.mounted else 1)
        for substring, responder in self._rules:
            if substring in command:
                return responder(command) if callable(responder) else responder
        return FakeResult()

    async def start_process(self, command: str, env: Optional[Dict[str, str]] = None) -> ProcessHandle:
        self.commands.append(command)
        self.envs.append(env)
        handle = FakeProcessHandle(len(self.commands), command, self._respond(command))
        self.handles.append(handle)
        return handle

    async def list_processes(self) -> List[ProcessHandle]:
        return [h for h in self.handles if h.is_running]
