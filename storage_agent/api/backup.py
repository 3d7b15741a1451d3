"""
Backup restore endpoint.

Serves the archive written by the binding backup so a container without a
mount can restore its config and workspace. Guarded by a shared token rather
than the regular API access.
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import Response

from ..config import Settings
from ..dependencies import get_object_store, get_settings
from ..services.sync import BACKUP_KEY, ObjectStore

router = APIRouter(prefix="/internal", tags=["backup"])


def _presented_token(
    token: Optional[str], x_backup_token: Optional[str], authorization: Optional[str]
) -> Optional[str]:
    if token is not None:
        return token
    if x_backup_token is not None:
        return x_backup_token
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return authorization


@router.get("/backup")
async def download_backup(
    token: Optional[str] = Query(None),
    x_backup_token: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    store: Optional[ObjectStore] = Depends(get_object_store),
):
    presented = _presented_token(token, x_backup_token, authorization)
    expected = settings.backup_restore_token
    if not expected or presented is None or not secrets.compare_digest(presented, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")

    if store is None:
        raise HTTPException(status_code=503, detail="Bucket binding not available")

    body = await store.get(BACKUP_KEY)
    if not body:
        raise HTTPException(status_code=404, detail="No backup found")

    logging.info(f"Serving backup {BACKUP_KEY} ({len(body)} bytes)")
    return Response(
        content=body,
        media_type="application/gzip",
        headers={"Content-Disposition": 'attachment; filename="backup.tar.gz"'},
    )
