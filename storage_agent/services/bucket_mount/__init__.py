"""
Bucket Mount Module

Components:
- MountTableVerifier: ground-truth check against the OS mount table
- MountStrategy: shared contract for attach strategies
- ManagedAttachStrategy / ManagedAttachWithCredentialsStrategy / ManualAttachStrategy
- MountStrategyChain: ordered fallback over the strategies
- BucketMountService: single-flight guarded entry point
"""

from .attach_client import BucketAttachClient, S3fsAttachClient
from .base_strategy import MountStrategy, StrategyPreconditionError
from .error_classifier import MountErrorClassifier
from .mount_service import MOUNT_KEY, BucketMountService, build_mount_target
from .mount_table import MountTableVerifier
from .strategies import (
    ManagedAttachStrategy,
    ManagedAttachWithCredentialsStrategy,
    ManualAttachStrategy,
)
from .strategy_chain import MountStrategyChain

__all__ = [
    "BucketAttachClient",
    "S3fsAttachClient",
    "MountStrategy",
    "StrategyPreconditionError",
    "MountErrorClassifier",
    "MOUNT_KEY",
    "BucketMountService",
    "build_mount_target",
    "MountTableVerifier",
    "ManagedAttachStrategy",
    "ManagedAttachWithCredentialsStrategy",
    "ManualAttachStrategy",
    "MountStrategyChain",
]
