"""
Tests for BindingBackup (archive + direct object upload).
"""

import base64
import gzip
from datetime import datetime
from unittest.mock import AsyncMock, Mock

import pytest

from storage_agent.services.sync import BACKUP_KEY, LAST_SYNC_KEY, BindingBackup, ObjectStore, SourceInspector
from tests.fakes import FakeResult

ARCHIVE = gzip.compress(b"agent config and workspace")
ARCHIVE_B64 = base64.b64encode(ARCHIVE).decode()


@pytest.fixture
def store():
    store = Mock(spec=ObjectStore)
    store.put = AsyncMock(return_value=None)
    return store


@pytest.fixture
def backup(settings, probe, store):
    return BindingBackup(settings, probe, SourceInspector(settings, probe), store)


class TestBindingBackup:
    @pytest.mark.asyncio
    async def test_uploads_archive_and_marker(self, backup, runner, store):
        runner.on("tar cz", FakeResult(stdout=ARCHIVE_B64 + "\n"))

        result = await backup.backup()

        assert result.success is True
        assert datetime.fromisoformat(result.last_sync)
        assert store.put.await_count == 2

        archive_call, marker_call = store.put.await_args_list
        assert archive_call.args == (BACKUP_KEY, ARCHIVE)
        assert archive_call.kwargs["content_type"] == "application/gzip"
        assert archive_call.kwargs["metadata"] == {"last-sync": result.last_sync}
        assert marker_call.args == (LAST_SYNC_KEY, result.last_sync)
        assert marker_call.kwargs["content_type"] == "text/plain"

    @pytest.mark.asyncio
    async def test_archive_command(self, backup, runner):
        runner.on("tar cz", FakeResult(stdout=ARCHIVE_B64))

        await backup.backup()

        command = runner.commands_matching("tar cz")[0]
        assert "-C /root .agent workspace" in command
        assert command.endswith("| base64 -w0")
        for pattern in ("*.lock", "*.log", "*.tmp"):
            assert f"--exclude='{pattern}'" in command

    @pytest.mark.asyncio
    async def test_empty_output_uploads_nothing(self, backup, runner, store):
        runner.on("tar cz", FakeResult(stdout="", stderr="tar: workspace: Cannot stat"))

        result = await backup.backup()

        assert result.success is False
        assert result.error_kind == "backup produced no output"
        assert "Cannot stat" in result.details
        store.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_timed_out_archive_is_failure(self, backup, runner, store):
        runner.on("tar cz", FakeResult(hang=True))

        result = await backup.backup()

        assert result.success is False
        store.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_undecodable_output_is_failure(self, backup, runner, store):
        runner.on("tar cz", FakeResult(stdout="not base64 at all!"))

        result = await backup.backup()

        assert result.success is False
        store.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_config_file(self, backup, runner, store):
        runner.on("test -f", FakeResult(exit_code=1))

        result = await backup.backup()

        assert result.error_kind == "no config file found"
        assert runner.commands_matching("tar") == []
        store.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_error_is_reported(self, backup, runner, store):
        runner.on("tar cz", FakeResult(stdout=ARCHIVE_B64))
        store.put.side_effect = RuntimeError("403 Forbidden")

        result = await backup.backup()

        assert result.success is False
        assert result.error_kind == "binding backup failed"
        assert result.details == "403 Forbidden"

    @pytest.mark.asyncio
    async def test_missing_store(self, settings, probe, runner):
        backup = BindingBackup(settings, probe, SourceInspector(settings, probe), None)

        result = await backup.backup()

        assert result.success is False
        assert result.error_kind == "bucket binding not available"
        assert runner.commands == []
