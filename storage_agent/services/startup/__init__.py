from .failure_ledger import StartupFailureLedger, derive_hint
from .gateway_supervisor import GatewaySupervisor, wait_for_port
from .startup_coordinator import STARTUP_KEY, StartupCoordinator

__all__ = [
    "StartupFailureLedger",
    "derive_hint",
    "GatewaySupervisor",
    "wait_for_port",
    "STARTUP_KEY",
    "StartupCoordinator",
]
