# app/core/characters.py
import logging
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    conflict,
    forbidden,
    not_found,
    user_not_authenticated,
    validation_error,
)
from app.core.prompts import generate_slug
from app.core.storage import BlobStore
from app.models.base import as_dict, utcnow
from app.models.character import Character
from app.models.image import Image
from app.models.video import Video

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "personality", "appearance")
OPTIONAL_FIELDS = ("setting", "age", "special_traits", "description")


def _clean_optional(value: Optional[str]) -> Optional[str]:
    # "" and whitespace are stored as absent
    if value is None:
        return None
    return value.strip() or None


def get_owned_character(db: Session, user_id: Optional[str], character_id: str) -> Optional[Character]:
    """
    The character if it exists and belongs to `user_id`, else None.
    Missing and not-owned are deliberately indistinguishable.
    """
    if not user_id:
        return None
    character = db.query(Character).filter(Character.id == character_id).first()
    if not character or character.user_id != user_id:
        return None
    return character


def _require_owner(db: Session, user_id: Optional[str], character_id: str) -> Character:
    if not user_id:
        raise user_not_authenticated()
    character = db.query(Character).filter(Character.id == character_id).first()
    if not character:
        raise not_found("Character not found")
    if character.user_id != user_id:
        raise forbidden("You do not have permission to modify this character")
    return character


def annotate_character(db: Session, blobs: BlobStore, character: Character) -> dict:
    """
    Character columns plus image/video counts and the thumbnail URL.
    """
    image_count = db.query(func.count(Image.id)).filter(Image.character_id == character.id).scalar()
    video_count = db.query(func.count(Video.id)).filter(Video.character_id == character.id).scalar()

    thumbnail_url = None
    if character.thumbnail_image_id:
        thumbnail = db.query(Image).filter(Image.id == character.thumbnail_image_id).first()
        if thumbnail:
            thumbnail_url = blobs.get_url(thumbnail.storage_id)

    data = as_dict(character)
    data.update(
        image_count=image_count or 0,
        video_count=video_count or 0,
        thumbnail_url=thumbnail_url,
    )
    return data


def get_user_characters(db: Session, blobs: BlobStore, user_id: Optional[str]) -> List[dict]:
    if not user_id:
        return []
    characters = (
        db.query(Character)
        .filter(Character.user_id == user_id)
        .order_by(Character.created_at.desc())
        .all()
    )
    return [annotate_character(db, blobs, character) for character in characters]


def get_character_by_id(db: Session, blobs: BlobStore, user_id: Optional[str], character_id: str) -> Optional[dict]:
    character = get_owned_character(db, user_id, character_id)
    if not character:
        return None
    return annotate_character(db, blobs, character)


def get_character_by_slug(db: Session, blobs: BlobStore, user_id: Optional[str], slug: str) -> Optional[dict]:
    if not user_id:
        return None
    character = (
        db.query(Character)
        .filter(Character.user_id == user_id, Character.slug == slug)
        .first()
    )
    if not character:
        return None
    return annotate_character(db, blobs, character)


def _slug_taken(db: Session, user_id: str, slug: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(Character.id).filter(Character.user_id == user_id, Character.slug == slug)
    if exclude_id:
        query = query.filter(Character.id != exclude_id)
    return query.first() is not None


def _commit_or_conflict(db: Session) -> None:
    # The unique (user_id, slug) constraint catches what the pre-check missed
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise conflict("A character with this name already exists")


def create_character(
    db: Session,
    user_id: Optional[str],
    name: str,
    personality: str,
    appearance: str,
    setting: Optional[str] = None,
    age: Optional[str] = None,
    special_traits: Optional[str] = None,
    description: Optional[str] = None,
) -> str:
    """
    Insert a new character for `user_id` and return its id.
    """
    if not user_id:
        raise user_not_authenticated()

    name = (name or "").strip()
    personality = (personality or "").strip()
    appearance = (appearance or "").strip()

    if not name:
        raise validation_error("Character name is required")
    if not personality or not appearance:
        raise validation_error("Character personality and appearance are required")

    slug = generate_slug(name)
    if _slug_taken(db, user_id, slug):
        raise conflict("A character with this name already exists")

    now = utcnow()
    character = Character(
        id=str(uuid4()),
        user_id=user_id,
        name=name,
        slug=slug,
        personality=personality,
        appearance=appearance,
        setting=_clean_optional(setting),
        age=_clean_optional(age),
        special_traits=_clean_optional(special_traits),
        description=_clean_optional(description),
        created_at=now,
        updated_at=now,
    )
    db.add(character)
    _commit_or_conflict(db)
    logger.info("Created character %s (%s) for user %s", character.id, slug, user_id)
    return character.id


def update_character(db: Session, user_id: Optional[str], character_id: str, **fields) -> None:
    """
    Apply the provided fields only. Keys left out are untouched; optional
    fields given as "" are cleared; a new name re-derives the slug.
    """
    character = _require_owner(db, user_id, character_id)

    unknown = set(fields) - set(REQUIRED_FIELDS) - set(OPTIONAL_FIELDS)
    if unknown:
        raise validation_error(f"Unknown character fields: {', '.join(sorted(unknown))}")

    updates = {}
    for field in REQUIRED_FIELDS:
        if fields.get(field) is None:
            continue
        value = fields[field].strip()
        if not value:
            raise validation_error(f"Character {field} must not be empty")
        updates[field] = value

    if "name" in updates:
        slug = generate_slug(updates["name"])
        if _slug_taken(db, character.user_id, slug, exclude_id=character.id):
            raise conflict("A character with this name already exists")
        updates["slug"] = slug

    for field in OPTIONAL_FIELDS:
        if field in fields:
            updates[field] = _clean_optional(fields[field])

    for field, value in updates.items():
        setattr(character, field, value)
    character.updated_at = utcnow()
    _commit_or_conflict(db)


def delete_character(db: Session, blobs: BlobStore, user_id: Optional[str], character_id: str) -> None:
    """
    Delete a character after all of its images and videos, blobs included.
    """
    character = _require_owner(db, user_id, character_id)

    images = db.query(Image).filter(Image.character_id == character.id).all()
    for image in images:
        blobs.delete(db, image.storage_id)
        db.delete(image)

    videos = db.query(Video).filter(Video.character_id == character.id).all()
    for video in videos:
        blobs.delete(db, video.storage_id)
        db.delete(video)

    # Media rows must be gone before the character's collections are loaded
    db.flush()
    db.delete(character)
    db.commit()
    logger.info(
        "Deleted character %s with %d images and %d videos",
        character_id, len(images), len(videos),
    )


def update_character_thumbnail(db: Session, user_id: Optional[str], character_id: str, image_id: str) -> None:
    character = _require_owner(db, user_id, character_id)

    image = db.query(Image).filter(Image.id == image_id).first()
    if not image or image.character_id != character.id:
        raise not_found("Image not found")

    character.thumbnail_image_id = image.id
    character.updated_at = utcnow()
    db.commit()
