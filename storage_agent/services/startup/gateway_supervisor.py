"""
Gateway Supervisor - brings up the long-lived gateway worker.

Steps:
1. Attach bucket storage (non-blocking: failure means no persistence)
2. Reuse an existing gateway process if it answers on its port
3. Otherwise start a new one and wait for its port
"""

import asyncio
import time
from typing import Optional

from ..bucket_mount import BucketMountService
from ..process import ProcessHandle, ProcessRunner
from ...config import Settings
from ...core.exceptions import ConfigurationError, GatewayStartError
from ...logging_config import get_app_logger

LOG_PREFIX = "[gateway]"

CLI_MARKERS = ("--version", " devices", " onboard")


async def wait_for_port(host: str, port: int, timeout: float, interval: float = 0.5) -> bool:
    """Poll a TCP port until it accepts a connection or timeout elapses."""
    deadline = time.monotonic() + timeout
    while True:
        try:
            _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=interval)
            writer.close()
            await writer.wait_closed()
            return True
        except (OSError, asyncio.TimeoutError):
            pass
        if time.monotonic() >= deadline:
            return False
        await asyncio.sleep(interval)


class GatewaySupervisor:
    def __init__(self, settings: Settings, runner: ProcessRunner, mount_service: BucketMountService):
        self._settings = settings
        self._runner = runner
        self._mount_service = mount_service
        self._logger = get_app_logger("gateway")

    def _is_gateway_process(self, handle: ProcessHandle) -> bool:
        command = handle.command
        if self._settings.gateway_command not in command:
            return False
        return not any(marker in command for marker in CLI_MARKERS)

    async def find_existing_process(self) -> Optional[ProcessHandle]:
        try:
            for handle in await self._runner.list_processes():
                if self._is_gateway_process(handle) and handle.is_running:
                    return handle
        except Exception as e:
            self._logger.error(f"{LOG_PREFIX} Could not list processes: {e}")
        return None

    async def _wait_for_gateway(self) -> bool:
        return await wait_for_port(
            self._settings.gateway_host,
            self._settings.gateway_port,
            self._settings.gateway_startup_timeout_seconds,
        )

    async def ensure_gateway(self) -> ProcessHandle:
        if not self._settings.has_ai_provider:
            raise ConfigurationError(
                "No AI provider configured: set ANTHROPIC_API_KEY, OPENAI_API_KEY or AI_GATEWAY_API_KEY"
            )

        self._logger.info(f"{LOG_PREFIX} Step 1/3: Mounting bucket storage (if configured)...")
        if await self._mount_service.attach():
            self._logger.info(f"{LOG_PREFIX} Step 1/3: Bucket mounted")
        else:
            self._logger.info(f"{LOG_PREFIX} Step 1/3: Bucket not mounted - gateway starts without persistent storage")

        self._logger.info(f"{LOG_PREFIX} Step 2/3: Checking for existing gateway process...")
        existing = await self.find_existing_process()
        if existing:
            self._logger.info(f"{LOG_PREFIX} Found existing process {existing.id} (status: {existing.status})")
            if await self._wait_for_gateway():
                self._logger.info(f"{LOG_PREFIX} Gateway reachable on port {self._settings.gateway_port}")
                return existing
            self._logger.error(f"{LOG_PREFIX} Existing process not reachable - killing and restarting")
            try:
                await existing.kill()
            except Exception as e:
                self._logger.error(f"{LOG_PREFIX} Failed to kill process {existing.id}: {e}")

        self._logger.info(f"{LOG_PREFIX} Step 3/3: Starting {self._settings.gateway_command}")
        process = await self._runner.start_process(self._settings.gateway_command)

        if not await self._wait_for_gateway():
            logs = await process.get_logs()
            await process.kill()
            raise GatewayStartError(
                f"Gateway failed to start on port {self._settings.gateway_port}. "
                f"Stderr: {logs.stderr[-500:] or '(empty)'}"
            )

        self._logger.info(f"{LOG_PREFIX} Gateway ready on port {self._settings.gateway_port}")
        return process
