from .binding_backup import BACKUP_KEY, LAST_SYNC_KEY, BindingBackup
from .object_store import ObjectStore, S3ObjectStore, resolve_object_store
from .source_inspector import NO_CONFIG_ERROR, SourceInspector
from .sync_orchestrator import SyncOrchestrator

__all__ = [
    "BACKUP_KEY",
    "LAST_SYNC_KEY",
    "BindingBackup",
    "ObjectStore",
    "S3ObjectStore",
    "resolve_object_store",
    "NO_CONFIG_ERROR",
    "SourceInspector",
    "SyncOrchestrator",
]
