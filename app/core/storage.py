# app/core/storage.py
import logging
import os
from typing import Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from app.core.config import STORAGE_DIRECTORY, PUBLIC_BASE_URL
from app.models.blob import Blob

logger = logging.getLogger(__name__)


class BlobStore:
    """
    Handle-based binary storage on the local filesystem.

    Bytes go to `<directory>/<storage_id>`; a `blobs` row keeps the content
    type so the file can be served back. The store never looks inside the
    bytes it is given.
    """

    def __init__(self, directory: str = STORAGE_DIRECTORY, base_url: str = PUBLIC_BASE_URL):
        self.directory = directory
        self.base_url = base_url.rstrip("/")
        os.makedirs(self.directory, exist_ok=True)

    def path(self, storage_id: str) -> str:
        # storage ids are generated here; anything else is not ours to serve
        if not storage_id or os.sep in storage_id or storage_id in (".", ".."):
            raise ValueError(f"Invalid storage id: {storage_id!r}")
        return os.path.join(self.directory, storage_id)

    def store(self, db: Session, data: bytes, content_type: str) -> str:
        """
        Write `data` to disk and record it. Returns the new storage id.
        The blob row is added to `db` but not committed.
        """
        storage_id = str(uuid4())
        with open(self.path(storage_id), "wb") as buffer:
            buffer.write(data)
        db.add(Blob(id=storage_id, content_type=content_type, size=len(data)))
        logger.info("Stored blob %s (%s, %d bytes)", storage_id, content_type, len(data))
        return storage_id

    def get(self, db: Session, storage_id: str) -> Optional[Blob]:
        return db.query(Blob).filter(Blob.id == storage_id).first()

    def get_url(self, storage_id: Optional[str]) -> Optional[str]:
        if not storage_id:
            return None
        return f"{self.base_url}/storage/{storage_id}"

    def discard(self, storage_id: str) -> None:
        """Remove the file of a blob whose row was rolled back."""
        file_path = self.path(storage_id)
        if os.path.exists(file_path):
            os.remove(file_path)
        logger.info("Discarded blob %s", storage_id)

    def delete(self, db: Session, storage_id: str) -> None:
        """
        Remove the file and its row. Missing files are ignored so a
        half-deleted blob can still be cleaned up.
        """
        file_path = self.path(storage_id)
        if os.path.exists(file_path):
            os.remove(file_path)
        db.query(Blob).filter(Blob.id == storage_id).delete()
        logger.info("Deleted blob %s", storage_id)


_default_store: Optional[BlobStore] = None


def get_blob_store() -> BlobStore:
    """
    FastAPI dependency returning the process-wide blob store.
    """
    global _default_store
    if _default_store is None:
        _default_store = BlobStore()
    return _default_store
