# app/core/images.py
import logging
from typing import List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from app.core.characters import get_owned_character
from app.core.errors import not_found, user_not_authenticated, validation_error
from app.core.storage import BlobStore
from app.models.base import as_dict, utcnow
from app.models.character import Character
from app.models.image import GENERATION_TYPES, Image

logger = logging.getLogger(__name__)


def image_with_url(blobs: BlobStore, image: Image) -> dict:
    data = as_dict(image)
    data["url"] = blobs.get_url(image.storage_id)
    return data


def get_owned_image(db: Session, user_id: Optional[str], image_id: str) -> Optional[Image]:
    """
    The image if its character belongs to `user_id`, else None.
    """
    if not user_id:
        return None
    image = db.query(Image).filter(Image.id == image_id).first()
    if not image:
        return None
    if not get_owned_character(db, user_id, image.character_id):
        return None
    return image


def get_character_images(db: Session, blobs: BlobStore, user_id: Optional[str], character_id: str) -> List[dict]:
    """
    Images of an owned character, newest first. Empty when the character is
    missing or belongs to someone else.
    """
    if not get_owned_character(db, user_id, character_id):
        return []
    images = (
        db.query(Image)
        .filter(Image.character_id == character_id)
        .order_by(Image.created_at.desc())
        .all()
    )
    return [image_with_url(blobs, image) for image in images]


def get_image_by_id(db: Session, blobs: BlobStore, user_id: Optional[str], image_id: str) -> Optional[dict]:
    image = get_owned_image(db, user_id, image_id)
    if not image:
        return None
    data = image_with_url(blobs, image)
    data["character"] = as_dict(image.character)
    return data


def save_generated_image(
    db: Session,
    character_id: str,
    storage_id: str,
    user_prompt: str,
    full_prompt: str,
    generation_type: str,
    model_id: str,
    width: int,
    height: int,
    aspect_ratio: str,
    source_image_id: Optional[str] = None,
    strength: Optional[float] = None,
) -> Image:
    """
    Add an Image row for a freshly stored blob. Not committed: the caller
    owns the transaction so related updates land together.
    """
    if generation_type not in GENERATION_TYPES:
        raise validation_error(f"Unknown generation type: {generation_type}")

    if source_image_id is not None:
        source = db.query(Image).filter(Image.id == source_image_id).first()
        if not source or source.character_id != character_id:
            raise validation_error("Source image must belong to the same character")

    image = Image(
        id=str(uuid4()),
        character_id=character_id,
        storage_id=storage_id,
        user_prompt=user_prompt,
        full_prompt=full_prompt,
        generation_type=generation_type,
        source_image_id=source_image_id,
        strength=strength,
        model_id=model_id,
        width=width,
        height=height,
        aspect_ratio=aspect_ratio,
        created_at=utcnow(),
    )
    db.add(image)
    return image


def delete_image(db: Session, blobs: BlobStore, user_id: Optional[str], image_id: str) -> None:
    """
    Delete an owned image and its blob. Clears the character thumbnail when
    it pointed at this image.
    """
    if not user_id:
        raise user_not_authenticated()

    image = get_owned_image(db, user_id, image_id)
    if not image:
        raise not_found("Image not found")

    character = db.query(Character).filter(Character.id == image.character_id).first()
    if character and character.thumbnail_image_id == image.id:
        character.thumbnail_image_id = None
        character.updated_at = utcnow()

    blobs.delete(db, image.storage_id)
    db.delete(image)
    db.commit()
    logger.info("Deleted image %s", image_id)
