# app/routers/video.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core import videos
from app.core.auth import get_current_user_id, get_optional_user_id
from app.core.credentials import CredentialCipher, get_api_key, get_cipher
from app.core.database import get_db
from app.core.generation import generate_video, get_client_factory
from app.core.storage import BlobStore, get_blob_store
from app.schemas.image import GenerationResponse
from app.schemas.video import VideoDetailResponse, VideoGenerateRequest

router = APIRouter()

@router.post("/generate", response_model=GenerationResponse)
def image_to_video(
    payload: VideoGenerateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    cipher: CredentialCipher = Depends(get_cipher),
    client_factory=Depends(get_client_factory),
):
    """
    Animate one of the caller's images.

    - **image_id**: the source image.
    - **prompt**: what the character should do.
    - **duration**: 5 or 10 seconds.
    """
    return generate_video(
        db,
        blobs,
        client_factory,
        user_id=user_id,
        api_key=get_api_key(db, user_id, cipher),
        image_id=payload.image_id,
        prompt=payload.prompt,
        duration=payload.duration,
    )

@router.get("/{video_id}", response_model=Optional[VideoDetailResponse])
def read_video(
    video_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return videos.get_video_by_id(db, blobs, user_id, video_id)

@router.delete("/{video_id}")
def delete_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    videos.delete_video(db, blobs, user_id, video_id)
    return {"detail": "Video deleted successfully."}
