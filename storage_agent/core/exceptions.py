# storage_agent/core/exceptions.py
from typing import Optional


class StorageAgentError(Exception):
    """Base class for errors raised by the storage agent."""


class BucketMountError(StorageAgentError):
    """Raised when an attach call or the native mount utility reports failure."""
    def __init__(self, message: str, stderr: Optional[str] = None):
        self.stderr = stderr or ""
        detail = f"{message}: {self.stderr.strip()}" if self.stderr.strip() else message
        super().__init__(detail)


class ConfigurationError(StorageAgentError):
    """Raised when required configuration is missing at startup."""


class GatewayStartError(StorageAgentError):
    """Raised when the gateway process does not come up on its port."""
