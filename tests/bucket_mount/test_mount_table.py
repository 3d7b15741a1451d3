"""
Tests for MountTableVerifier.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from storage_agent.services.bucket_mount import MountTableVerifier
from storage_agent.services.process import ProbeResult


class TestMountTableVerifier:
    @pytest.mark.asyncio
    async def test_mounted_when_signature_listed(self, runner, probe):
        runner.mounted = True
        verifier = MountTableVerifier(probe)

        assert await verifier.is_mounted("/data/agent", "fast-path") is True
        assert runner.commands == ["mount | grep 's3fs on /data/agent '"]

    @pytest.mark.asyncio
    async def test_not_mounted_when_grep_finds_nothing(self, runner, probe):
        verifier = MountTableVerifier(probe)

        assert await verifier.is_mounted("/data/agent", "fast-path") is False

    @pytest.mark.asyncio
    async def test_probe_error_means_not_mounted(self):
        probe = Mock()
        probe.run = AsyncMock(side_effect=OSError("spawn failed"))
        verifier = MountTableVerifier(probe)

        assert await verifier.is_mounted("/data/agent", "final-check") is False

    @pytest.mark.asyncio
    async def test_timeout_means_not_mounted(self):
        probe = Mock()
        probe.run = AsyncMock(
            return_value=ProbeResult(command="mount", exit_code=None, stdout="s3fs on", timed_out=True)
        )
        verifier = MountTableVerifier(probe)

        assert await verifier.is_mounted("/data/agent") is False

    @pytest.mark.asyncio
    async def test_custom_signature(self, runner, probe):
        verifier = MountTableVerifier(probe, fs_signature="rclone")

        await verifier.is_mounted("/mnt/bucket")

        assert runner.commands == ["mount | grep 'rclone on /mnt/bucket '"]

    @pytest.mark.asyncio
    async def test_sibling_path_with_same_prefix_is_not_a_match(self):
        probe = Mock()
        probe.run = AsyncMock(
            return_value=ProbeResult(
                command="mount",
                exit_code=0,
                stdout="s3fs on /data/agent2 type fuse.s3fs (rw,nosuid,nodev)\n",
            )
        )
        verifier = MountTableVerifier(probe)

        assert await verifier.is_mounted("/data/agent") is False
        assert probe.run.await_args.args[0] == "mount | grep 's3fs on /data/agent '"
