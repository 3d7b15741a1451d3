"""Abstract process runner - the "spawn a command and observe it" capability."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

RUNNING_STATUSES = ("starting", "running")


@dataclass(frozen=True)
class ProcessLogs:
    stdout: str = ""
    stderr: str = ""


class ProcessHandle(ABC):
    """A spawned external command whose status can be polled."""

    id: str
    command: str

    @property
    @abstractmethod
    def status(self) -> str:
        """One of: starting, running, completed, failed, killed."""
        pass

    @property
    @abstractmethod
    def exit_code(self) -> Optional[int]:
        pass

    @abstractmethod
    async def get_logs(self) -> ProcessLogs:
        pass

    @abstractmethod
    async def kill(self) -> None:
        pass

    @property
    def is_running(self) -> bool:
        return self.status in RUNNING_STATUSES


class ProcessRunner(ABC):
    """Spawns shell commands inside the container."""

    @abstractmethod
    async def start_process(
        self, command: str, env: Optional[Dict[str, str]] = None
    ) -> ProcessHandle:
        pass

    @abstractmethod
    async def list_processes(self) -> List[ProcessHandle]:
        pass
