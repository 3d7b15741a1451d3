"""
Tests for ProcessProbe and the bounded polling helper.
"""

import signal
from unittest.mock import AsyncMock, patch

import pytest

from storage_agent.services.process import (
    AdoptedProcessHandle,
    LocalProcessRunner,
    ProcessProbe,
    parse_process_table,
    wait_for_process,
)
from tests.fakes import FakeProcessHandle, FakeProcessRunner, FakeResult


class TestWaitForProcess:
    @pytest.mark.asyncio
    async def test_returns_true_for_finished_process(self):
        handle = FakeProcessHandle(1, "true", FakeResult())
        assert await wait_for_process(handle, timeout=0.05, interval=0.01) is True

    @pytest.mark.asyncio
    async def test_returns_false_when_cap_reached(self):
        handle = FakeProcessHandle(1, "sleep 100", FakeResult(hang=True))
        assert await wait_for_process(handle, timeout=0.05, interval=0.01) is False
        assert handle.status == "running"


class TestProcessProbe:
    @pytest.mark.asyncio
    async def test_captures_output_and_exit_code(self):
        runner = FakeProcessRunner().on("echo", FakeResult(stdout="hello\n", stderr="warn", exit_code=0))
        probe = ProcessProbe(runner, poll_interval=0.01)

        result = await probe.run("echo hello")

        assert result.succeeded
        assert result.stdout == "hello\n"
        assert result.stderr == "warn"
        assert result.timed_out is False

    @pytest.mark.asyncio
    async def test_non_zero_exit_is_not_success(self):
        runner = FakeProcessRunner().on("test -f", FakeResult(exit_code=1))
        probe = ProcessProbe(runner, poll_interval=0.01)

        result = await probe.run("test -f /missing")

        assert result.exit_code == 1
        assert not result.succeeded

    @pytest.mark.asyncio
    async def test_hung_command_is_killed_and_reported_as_timed_out(self):
        runner = FakeProcessRunner().on("s3fs", FakeResult(hang=True))
        probe = ProcessProbe(runner, poll_interval=0.01)

        result = await probe.run("s3fs bucket /data/agent", timeout=0.05)

        assert result.timed_out is True
        assert result.exit_code is None
        assert not result.succeeded
        assert runner.handles[0].status == "killed"

    @pytest.mark.asyncio
    async def test_env_is_passed_to_runner(self):
        runner = FakeProcessRunner()
        probe = ProcessProbe(runner, poll_interval=0.01)

        await probe.run("env", env={"AWSACCESSKEYID": "key"})

        assert runner.envs == [{"AWSACCESSKEYID": "key"}]


class TestLocalProcessRunner:
    @pytest.mark.asyncio
    async def test_runs_shell_command(self):
        probe = ProcessProbe(LocalProcessRunner(), poll_interval=0.05)

        result = await probe.run("echo storage-agent && echo oops 1>&2", timeout=5.0)

        assert result.succeeded
        assert result.stdout.strip() == "storage-agent"
        assert result.stderr.strip() == "oops"

    @pytest.mark.asyncio
    async def test_reports_exit_code(self):
        probe = ProcessProbe(LocalProcessRunner(), poll_interval=0.05)

        result = await probe.run("exit 3", timeout=5.0)

        assert result.exit_code == 3

    @pytest.mark.asyncio
    async def test_times_out_and_kills_long_command(self):
        runner = LocalProcessRunner()
        probe = ProcessProbe(runner, poll_interval=0.05)

        result = await probe.run("sleep 10", timeout=0.2)

        assert result.timed_out is True
        with patch.object(runner, "_read_process_table", AsyncMock(return_value="")):
            assert await runner.list_processes() == []


PS_OUTPUT = """\
    1     1 /sbin/init
  812   812 /bin/sh /usr/local/bin/start-gateway.sh
  813   812 node gateway.js --port 18789
  900   900 sleep 30

"""


class TestProcessTable:
    def test_parse_skips_excluded_pids_and_sessions(self):
        entries = parse_process_table(PS_OUTPUT + "garbage line\n", exclude={1, 900})

        assert entries == [
            (812, "/bin/sh /usr/local/bin/start-gateway.sh"),
            (813, "node gateway.js --port 18789"),
        ]

    def test_excluding_a_session_drops_its_children(self):
        assert parse_process_table(PS_OUTPUT, exclude={812}) == [(1, "/sbin/init"), (900, "sleep 30")]

    @pytest.mark.asyncio
    async def test_list_processes_adopts_processes_from_earlier_runs(self):
        runner = LocalProcessRunner()

        with patch.object(runner, "_read_process_table", AsyncMock(return_value=PS_OUTPUT)):
            handles = await runner.list_processes()

        gateway = next(h for h in handles if "start-gateway.sh" in h.command)
        assert isinstance(gateway, AdoptedProcessHandle)
        assert gateway.pid == 812

    @pytest.mark.asyncio
    async def test_own_processes_are_not_adopted_twice(self):
        runner = LocalProcessRunner()
        handle = await runner.start_process("sleep 10")
        table = f"{handle.pid} {handle.pid} /bin/sh -c sleep 10\n"
        try:
            with patch.object(runner, "_read_process_table", AsyncMock(return_value=table)):
                assert await runner.list_processes() == [handle]
        finally:
            await handle.kill()


class TestAdoptedProcessHandle:
    @pytest.mark.asyncio
    async def test_kill_signals_pid(self):
        handle = AdoptedProcessHandle(4242, "/usr/local/bin/start-gateway.sh")

        with patch("storage_agent.services.process.local_runner.os.kill") as kill:
            assert handle.status == "running"
            await handle.kill()

        assert kill.call_args_list[-1].args == (4242, signal.SIGKILL)
        assert handle.status == "killed"
        assert handle.exit_code is None

    def test_vanished_pid_is_not_running(self):
        handle = AdoptedProcessHandle(4242, "/usr/local/bin/start-gateway.sh")

        with patch("storage_agent.services.process.local_runner.os.kill", side_effect=ProcessLookupError):
            assert handle.is_running is False
