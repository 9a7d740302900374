"""Archive save/load endpoints."""

import structlog
from fastapi import APIRouter, HTTPException, Request

from bplus.api.models.research import ArchiveFileRequest
from bplus.database.repository import StorageError

router = APIRouter(prefix="/api/research", tags=["research"])
logger = structlog.get_logger(__name__)


@router.post("/save")
async def save_archive(file_request: ArchiveFileRequest, app_request: Request):
    """Copy the active store into a named archive file."""
    try:
        name = await app_request.app.state.store.save_archive(file_request.filename)
    except StorageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": f"Saved to {name}"}


@router.post("/load")
async def load_archive(file_request: ArchiveFileRequest, app_request: Request):
    """Make a saved archive the active store."""
    try:
        name = await app_request.app.state.store.load_archive(file_request.filename)
    except StorageError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": f"Loaded {name}"}


@router.get("/files")
async def list_archive_files(app_request: Request):
    """List archive files in the storage directory."""
    return app_request.app.state.store.list_archive_files()
