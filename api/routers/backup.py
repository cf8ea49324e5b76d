"""Backup Router - export and restore of a user's full dataset."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from api.dependencies import get_entry_store
from storage import BackupFormatError, EntryStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/backup", tags=["Backup"])


@router.get("/export")
async def export_backup(
    username: Optional[str] = Query(None, description="Included in the download filename"),
    store: EntryStore = Depends(get_entry_store),
):
    """Download all stored data as a JSON backup document."""
    document = store.backups.export_document()
    filename = store.backups.export_filename(username)
    return JSONResponse(
        content=document,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import")
async def import_backup(
    document: dict[str, Any] = Body(...),
    store: EntryStore = Depends(get_entry_store),
):
    """Replace all stored data with a backup document's contents."""
    try:
        records = store.backups.import_document(document)
    except BackupFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "restored", "days": len(records)}
