"""Concrete attach strategies, in the order the chain tries them."""

import asyncio
import os
import shlex

import aiofiles

from .attach_client import BucketAttachClient
from .base_strategy import MountStrategy, StrategyPreconditionError
from .error_classifier import MountErrorClassifier
from ..process import ProcessProbe
from ...core.exceptions import BucketMountError
from ...models import MountTarget


class ManagedAttachStrategy(MountStrategy):
    """Managed attach with the endpoint only; the storage layer resolves ambient credentials."""

    name = "managed"

    def __init__(self, client: BucketAttachClient, classifier: MountErrorClassifier):
        super().__init__(classifier)
        self._client = client

    async def _mount(self, target: MountTarget) -> None:
        await self._client.mount_bucket(target.bucket_name, target.mount_path, target.endpoint)


class ManagedAttachWithCredentialsStrategy(ManagedAttachStrategy):
    """Managed attach with explicit credentials passed in the options."""

    name = "managed-credentials"

    def applies_to(self, target: MountTarget) -> bool:
        return target.has_credentials

    async def _mount(self, target: MountTarget) -> None:
        await self._client.mount_bucket(
            target.bucket_name,
            target.mount_path,
            target.endpoint,
            credentials=target.credentials,
        )


class ManualAttachStrategy(MountStrategy):
    """
    Low-level s3fs attach with a passwd file.

    The passwd file is always opened in "w" mode so repeated attempts can
    never accumulate duplicate entries for the bucket.
    """

    name = "manual-s3fs"

    def __init__(
        self,
        probe: ProcessProbe,
        classifier: MountErrorClassifier,
        passwd_file: str,
        timeout: float = 30.0,
    ):
        super().__init__(classifier)
        self._probe = probe
        self._passwd_file = passwd_file
        self._timeout = timeout

    def applies_to(self, target: MountTarget) -> bool:
        return target.has_credentials

    async def write_credentials(self, target: MountTarget) -> None:
        creds = target.credentials
        entry = f"{target.bucket_name}:{creds.access_key_id}:{creds.secret_access_key}\n"
        try:
            async with aiofiles.open(self._passwd_file, "w") as f:
                await f.write(entry)
            await asyncio.to_thread(os.chmod, self._passwd_file, 0o600)
        except OSError as e:
            raise StrategyPreconditionError(
                f"Cannot write credential file {self._passwd_file}: {e}"
            ) from e

    async def _mount(self, target: MountTarget) -> None:
        await self.write_credentials(target)

        path = shlex.quote(target.mount_path)
        options = (
            f"passwd_file={self._passwd_file},url={target.endpoint},use_path_request_style"
        )
        command = (
            f"mkdir -p {path} && "
            f"s3fs {shlex.quote(target.bucket_name)} {path} -o {shlex.quote(options)}"
        )
        result = await self._probe.run(command, timeout=self._timeout)
        if result.timed_out:
            raise BucketMountError(f"s3fs did not return within {self._timeout}s")
        if result.exit_code != 0:
            raise BucketMountError(f"s3fs exited with code {result.exit_code}", result.stderr)
