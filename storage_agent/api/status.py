from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..config import Settings
from ..dependencies import (
    get_gateway_supervisor,
    get_mount_service,
    get_settings,
    get_startup_coordinator,
    get_sync_orchestrator,
)
from ..models import StartupFailure, SyncResult
from ..services.bucket_mount import BucketMountService
from ..services.startup import GatewaySupervisor, StartupCoordinator, wait_for_port
from ..services.sync import SyncOrchestrator

router = APIRouter(prefix="/api", tags=["status"])


class StatusResponse(BaseModel):
    ok: bool
    gateway_running: bool
    gateway_state: str
    startup_in_progress: bool
    startup_failure: Optional[StartupFailure] = None
    mount: dict


@router.get("/status", response_model=StatusResponse)
async def get_status(
    coordinator: StartupCoordinator = Depends(get_startup_coordinator),
    supervisor: GatewaySupervisor = Depends(get_gateway_supervisor),
    mount_service: BucketMountService = Depends(get_mount_service),
    settings: Settings = Depends(get_settings),
) -> StatusResponse:
    """
    Report gateway, startup and mount health.

    The gateway counts as running only once its port accepts connections;
    a process that is still coming up reports "starting". Read-only: never
    starts a mount or a startup attempt.
    """
    process = await supervisor.find_existing_process()
    if process is None:
        gateway_state = "no_process"
    elif await wait_for_port(
        settings.gateway_host, settings.gateway_port, timeout=settings.status_port_check_seconds
    ):
        gateway_state = "running"
    else:
        gateway_state = "starting"
    gateway_running = gateway_state == "running"
    failure = coordinator.current_startup_failure()
    return StatusResponse(
        ok=gateway_running and failure is None,
        gateway_running=gateway_running,
        gateway_state=gateway_state,
        startup_in_progress=coordinator.is_startup_in_progress(),
        startup_failure=failure,
        mount=await mount_service.get_mount_info(),
    )


@router.post("/storage/sync", response_model=SyncResult)
async def trigger_sync(
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
) -> SyncResult:
    """Sync config and workspace to the bucket (mount first, binding backup otherwise)."""
    return await orchestrator.sync()
