from .base_runner import ProcessHandle, ProcessLogs, ProcessRunner
from .local_runner import AdoptedProcessHandle, LocalProcessRunner, parse_process_table
from .probe import ProbeResult, ProcessProbe, wait_for_process

__all__ = [
    "ProcessHandle",
    "ProcessLogs",
    "ProcessRunner",
    "AdoptedProcessHandle",
    "LocalProcessRunner",
    "parse_process_table",
    "ProbeResult",
    "ProcessProbe",
    "wait_for_process",
]
