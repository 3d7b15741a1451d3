"""Managed bucket attach - the "attach bucket at path with options" capability."""

import shlex
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..process import ProcessProbe
from ...core.exceptions import BucketMountError
from ...logging_config import get_app_logger
from ...models import BucketCredentials


class BucketAttachClient(ABC):
    """Attaches a bucket at a local path. May raise; callers must verify the mount table."""

    @abstractmethod
    async def mount_bucket(
        self,
        bucket_name: str,
        mount_path: str,
        endpoint: str,
        credentials: Optional[BucketCredentials] = None,
    ) -> None:
        pass


class S3fsAttachClient(BucketAttachClient):
    """
    Attach through s3fs.

    Without credentials s3fs resolves them itself (AWS_* environment,
    ~/.aws/credentials, instance role). Explicit credentials are handed to the
    child process environment only, never written to disk.
    """

    def __init__(self, probe: ProcessProbe, timeout: float = 30.0):
        self._probe = probe
        self._timeout = timeout
        self._logger = get_app_logger("bucket_mount")

    async def mount_bucket(
        self,
        bucket_name: str,
        mount_path: str,
        endpoint: str,
        credentials: Optional[BucketCredentials] = None,
    ) -> None:
        path = shlex.quote(mount_path)
        options = f"url={endpoint},use_path_request_style"
        command = (
            f"mkdir -p {path} && "
            f"s3fs {shlex.quote(bucket_name)} {path} -o {shlex.quote(options)}"
        )

        env: Optional[Dict[str, str]] = None
        if credentials:
            env = {
                "AWSACCESSKEYID": credentials.access_key_id,
                "AWSSECRETACCESSKEY": credentials.secret_access_key,
            }

        result = await self._probe.run(command, timeout=self._timeout, env=env)
        if result.timed_out:
            raise BucketMountError(f"s3fs did not return within {self._timeout}s")
        if result.exit_code != 0:
            raise BucketMountError(f"s3fs exited with code {result.exit_code}", result.stderr)
