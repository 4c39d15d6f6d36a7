# app/core/videos.py
import logging
from typing import List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from app.core.characters import get_owned_character
from app.core.config import DEFAULT_VIDEO_FPS
from app.core.errors import not_found, user_not_authenticated, validation_error
from app.core.storage import BlobStore
from app.models.base import as_dict, utcnow
from app.models.image import Image
from app.models.video import Video

logger = logging.getLogger(__name__)


def _video_details(db: Session, blobs: BlobStore, video: Video) -> dict:
    data = as_dict(video)
    data["url"] = blobs.get_url(video.storage_id)

    # The source image may have been deleted since
    source_image = db.query(Image).filter(Image.id == video.source_image_id).first()
    data["source_image_url"] = blobs.get_url(source_image.storage_id) if source_image else None
    data["source_image_prompt"] = source_image.user_prompt if source_image else None
    return data


def get_owned_video(db: Session, user_id: Optional[str], video_id: str) -> Optional[Video]:
    if not user_id:
        return None
    video = db.query(Video).filter(Video.id == video_id).first()
    if not video:
        return None
    if not get_owned_character(db, user_id, video.character_id):
        return None
    return video


def get_character_videos(db: Session, blobs: BlobStore, user_id: Optional[str], character_id: str) -> List[dict]:
    if not get_owned_character(db, user_id, character_id):
        return []
    videos = (
        db.query(Video)
        .filter(Video.character_id == character_id)
        .order_by(Video.created_at.desc())
        .all()
    )
    return [_video_details(db, blobs, video) for video in videos]


def get_video_by_id(db: Session, blobs: BlobStore, user_id: Optional[str], video_id: str) -> Optional[dict]:
    """
    Video with its URL, owning character and source image (or None for the
    source image when it no longer exists).
    """
    video = get_owned_video(db, user_id, video_id)
    if not video:
        return None

    data = _video_details(db, blobs, video)
    data["character"] = as_dict(video.character)

    source_image = db.query(Image).filter(Image.id == video.source_image_id).first()
    if source_image:
        source = as_dict(source_image)
        source["url"] = data["source_image_url"]
        data["source_image"] = source
    else:
        data["source_image"] = None
    return data


def save_generated_video(
    db: Session,
    character_id: str,
    source_image_id: str,
    storage_id: str,
    prompt: str,
    model_id: str,
    width: int,
    height: int,
    duration: int,
    fps: Optional[int] = None,
) -> Video:
    """
    Add a Video row for a freshly stored blob. Not committed.
    """
    source = db.query(Image).filter(Image.id == source_image_id).first()
    if not source or source.character_id != character_id:
        raise validation_error("Source image must belong to the same character")

    video = Video(
        id=str(uuid4()),
        character_id=character_id,
        storage_id=storage_id,
        source_image_id=source_image_id,
        prompt=prompt,
        model_id=model_id,
        width=width,
        height=height,
        duration=duration,
        fps=fps if fps is not None else DEFAULT_VIDEO_FPS,
        created_at=utcnow(),
    )
    db.add(video)
    return video


def delete_video(db: Session, blobs: BlobStore, user_id: Optional[str], video_id: str) -> None:
    if not user_id:
        raise user_not_authenticated()

    video = get_owned_video(db, user_id, video_id)
    if not video:
        raise not_found("Video not found")

    blobs.delete(db, video.storage_id)
    db.delete(video)
    db.commit()
    logger.info("Deleted video %s", video_id)
