# app/routers/storage.py
import os

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import not_found
from app.core.storage import BlobStore, get_blob_store

router = APIRouter()

@router.get("/{storage_id}")
def read_blob(
    storage_id: str,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    """
    Serve a stored blob. Storage ids are unguessable UUIDs; the generation
    provider fetches source images through this route without a session.
    """
    blob = blobs.get(db, storage_id)
    if not blob:
        raise not_found("Blob not found")
    file_path = blobs.path(blob.id)
    if not os.path.exists(file_path):
        raise not_found("Blob not found")
    return FileResponse(file_path, media_type=blob.content_type)
