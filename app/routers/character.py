# app/routers/character.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Form
from sqlalchemy.orm import Session

from app.core import characters
from app.core.auth import get_current_user_id, get_optional_user_id
from app.core.database import get_db
from app.core.images import get_character_images
from app.core.storage import BlobStore, get_blob_store
from app.core.videos import get_character_videos
from app.schemas.character import (
    CharacterCreateRequest,
    CharacterCreateResponse,
    CharacterResponse,
    CharacterUpdateRequest,
)
from app.schemas.image import ImageResponse
from app.schemas.video import VideoResponse

router = APIRouter()

@router.get("", response_model=List[CharacterResponse])
def list_characters(
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    """
    All characters of the caller, newest first, with image/video counts and
    thumbnail URL. Empty when not logged in.
    """
    return characters.get_user_characters(db, blobs, user_id)

@router.get("/slug/{slug}", response_model=Optional[CharacterResponse])
def read_character_by_slug(
    slug: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return characters.get_character_by_slug(db, blobs, user_id, slug)

@router.get("/{character_id}", response_model=Optional[CharacterResponse])
def read_character(
    character_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    """
    Returns `null` when the character does not exist or is not the caller's.
    """
    return characters.get_character_by_id(db, blobs, user_id, character_id)

@router.post("", response_model=CharacterCreateResponse)
def create_character(
    payload: CharacterCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Create a new character.

    - **name**, **personality**, **appearance** are required.
    - The slug is derived from the name and must be unique for the caller.
    """
    character_id = characters.create_character(db, user_id, **payload.model_dump())
    character = characters.get_owned_character(db, user_id, character_id)
    return CharacterCreateResponse(character_id=character_id, slug=character.slug)

@router.patch("/{character_id}")
def update_character(
    character_id: str,
    payload: CharacterUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Update the fields present in the body. Optional fields sent as "" are cleared.
    """
    characters.update_character(db, user_id, character_id, **payload.model_dump(exclude_unset=True))
    return {"detail": "Character updated successfully."}

@router.delete("/{character_id}")
def delete_character(
    character_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    """
    Delete a character and all associated images and videos, blobs included.
    """
    characters.delete_character(db, blobs, user_id, character_id)
    return {"detail": "Character and all associated media deleted successfully."}

@router.put("/{character_id}/thumbnail")
def set_thumbnail(
    character_id: str,
    image_id: str = Form(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Use one of the character's images as its thumbnail.
    """
    characters.update_character_thumbnail(db, user_id, character_id, image_id)
    return {"detail": "Thumbnail updated successfully."}

@router.get("/{character_id}/images", response_model=List[ImageResponse])
def list_character_images(
    character_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return get_character_images(db, blobs, user_id, character_id)

@router.get("/{character_id}/videos", response_model=List[VideoResponse])
def list_character_videos(
    character_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return get_character_videos(db, blobs, user_id, character_id)
