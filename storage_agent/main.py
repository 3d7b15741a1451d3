import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from .api import backup, status
from .dependencies import get_gateway_supervisor, get_settings, get_startup_coordinator
from .logging_config import setup_logging

# Global reference til background tasks
_background_tasks = []


async def run_startup() -> None:
    """Guarded gateway startup; failures are already recorded in the ledger."""
    coordinator = get_startup_coordinator()
    supervisor = get_gateway_supervisor()
    try:
        await coordinator.run_exclusive(supervisor.ensure_gateway)
    except Exception as e:
        logging.error(f"Background startup attempt failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings)

    logging.info("Storage Agent starting up...")
    logging.info(f"Bucket: {settings.storage_bucket_name} -> {settings.mount_path}")

    _background_tasks.append(asyncio.create_task(run_startup()))

    yield

    logging.info("Storage Agent shutting down...")
    for task in _background_tasks:
        task.cancel()
    if _background_tasks:
        await asyncio.gather(*_background_tasks, return_exceptions=True)
    _background_tasks.clear()


app = FastAPI(
    title="Storage Agent",
    description="Persistent bucket storage and sync for the gateway worker",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(status.router)
app.include_router(backup.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "storage-agent"}


if __name__ == "__main__":
    uvicorn.run(
        "storage_agent.main:app", host="0.0.0.0", port=8000, reload=False, log_level="info"
    )
