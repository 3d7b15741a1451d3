from functools import lru_cache
from typing import Any, Dict, Optional

from .config import Settings
from .services.bucket_mount import (
    BucketMountService,
    ManagedAttachStrategy,
    ManagedAttachWithCredentialsStrategy,
    ManualAttachStrategy,
    MountErrorClassifier,
    MountStrategyChain,
    MountTableVerifier,
    S3fsAttachClient,
)
from .services.process import LocalProcessRunner, ProcessProbe, ProcessRunner
from .services.startup import GatewaySupervisor, StartupCoordinator, StartupFailureLedger
from .services.sync import (
    BindingBackup,
    ObjectStore,
    SourceInspector,
    SyncOrchestrator,
    resolve_object_store,
)

# Global singleton instances
_singletons: Dict[str, Any] = {}


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_process_runner() -> ProcessRunner:
    if "process_runner" not in _singletons:
        _singletons["process_runner"] = LocalProcessRunner()
    return _singletons["process_runner"]


def get_process_probe() -> ProcessProbe:
    if "process_probe" not in _singletons:
        _singletons["process_probe"] = ProcessProbe(
            get_process_runner(), poll_interval=get_settings().poll_interval_seconds
        )
    return _singletons["process_probe"]


def get_mount_verifier() -> MountTableVerifier:
    if "mount_verifier" not in _singletons:
        settings = get_settings()
        _singletons["mount_verifier"] = MountTableVerifier(
            get_process_probe(),
            fs_signature=settings.mount_fs_signature,
            timeout=settings.probe_timeout_seconds,
        )
    return _singletons["mount_verifier"]


def get_mount_service() -> BucketMountService:
    if "mount_service" not in _singletons:
        settings = get_settings()
        probe = get_process_probe()
        classifier = MountErrorClassifier()
        client = S3fsAttachClient(probe, timeout=settings.mount_timeout_seconds)
        chain = MountStrategyChain(
            get_mount_verifier(),
            [
                ManagedAttachStrategy(client, classifier),
                ManagedAttachWithCredentialsStrategy(client, classifier),
                ManualAttachStrategy(
                    probe,
                    classifier,
                    passwd_file=settings.s3fs_passwd_file,
                    timeout=settings.mount_timeout_seconds,
                ),
            ],
        )
        _singletons["mount_service"] = BucketMountService(settings, get_mount_verifier(), chain)
    return _singletons["mount_service"]


def get_object_store() -> Optional[ObjectStore]:
    if "object_store" not in _singletons:
        _singletons["object_store"] = resolve_object_store(get_settings())
    return _singletons["object_store"]


def get_sync_orchestrator() -> SyncOrchestrator:
    if "sync_orchestrator" not in _singletons:
        settings = get_settings()
        probe = get_process_probe()
        inspector = SourceInspector(settings, probe)
        _singletons["sync_orchestrator"] = SyncOrchestrator(
            settings=settings,
            mount_service=get_mount_service(),
            probe=probe,
            inspector=inspector,
            binding_backup=BindingBackup(settings, probe, inspector, get_object_store()),
        )
    return _singletons["sync_orchestrator"]


def get_failure_ledger() -> StartupFailureLedger:
    if "failure_ledger" not in _singletons:
        _singletons["failure_ledger"] = StartupFailureLedger()
    return _singletons["failure_ledger"]


def get_startup_coordinator() -> StartupCoordinator:
    if "startup_coordinator" not in _singletons:
        _singletons["startup_coordinator"] = StartupCoordinator(get_failure_ledger())
    return _singletons["startup_coordinator"]


def get_gateway_supervisor() -> GatewaySupervisor:
    if "gateway_supervisor" not in _singletons:
        _singletons["gateway_supervisor"] = GatewaySupervisor(
            get_settings(), get_process_runner(), get_mount_service()
        )
    return _singletons["gateway_supervisor"]


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    _singletons.clear()
    get_settings.cache_clear()
