from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FailureReason(str, Enum):
    """Classification of a failed attach attempt."""

    CREDENTIALS_MISSING = "credentials-missing"
    ALREADY_MOUNTED_CONFLICT = "already-mounted-conflict"
    CAPABILITY_UNAVAILABLE = "capability-unavailable"  # e.g. no FUSE device
    OTHER = "other"


class OutcomeKind(str, Enum):
    SUCCEEDED = "Succeeded"
    FAILED_RECOVERABLE = "FailedRecoverable"
    FAILED_FATAL = "FailedFatal"


@dataclass(frozen=True)
class StrategyOutcome:
    """Result of a single attach strategy attempt. Advisory only: the mount table decides."""

    kind: OutcomeKind
    reason: Optional[FailureReason] = None
    message: str = ""

    @classmethod
    def succeeded(cls) -> "StrategyOutcome":
        return cls(OutcomeKind.SUCCEEDED)

    @classmethod
    def recoverable(cls, reason: FailureReason, message: str) -> "StrategyOutcome":
        return cls(OutcomeKind.FAILED_RECOVERABLE, reason, message)

    @classmethod
    def fatal(cls, message: str) -> "StrategyOutcome":
        return cls(OutcomeKind.FAILED_FATAL, FailureReason.OTHER, message)

    @property
    def is_fatal(self) -> bool:
        return self.kind == OutcomeKind.FAILED_FATAL


class BucketCredentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_key_id: str
    secret_access_key: str = Field(..., repr=False)


class MountTarget(BaseModel):
    """
    Everything one attach attempt needs.

    Built fresh from Settings for every attempt; credentials can change
    between deployments so a target is never reused.
    """

    model_config = ConfigDict(frozen=True)

    bucket_name: str
    mount_path: str
    endpoint: str
    credentials: Optional[BucketCredentials] = None

    @property
    def has_credentials(self) -> bool:
        return self.credentials is not None


class SyncResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    last_sync: Optional[str] = Field(None, description="ISO-8601 timestamp of the last successful sync")
    error_kind: Optional[str] = None
    details: Optional[str] = None


class StartupFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    hint: Optional[str] = None
    occurred_at: datetime
