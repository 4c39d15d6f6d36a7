# app/routers/image.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core import images
from app.core.auth import get_current_user_id, get_optional_user_id
from app.core.credentials import CredentialCipher, get_api_key, get_cipher
from app.core.database import get_db
from app.core.generation import generate_image_variation, generate_text_to_image, get_client_factory
from app.core.storage import BlobStore, get_blob_store
from app.schemas.image import (
    GenerationResponse,
    ImageDetailResponse,
    ImageVariationRequest,
    TextToImageRequest,
)

router = APIRouter()

@router.post("/generate", response_model=GenerationResponse)
def text_to_image(
    payload: TextToImageRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    cipher: CredentialCipher = Depends(get_cipher),
    client_factory=Depends(get_client_factory),
):
    """
    Generate a new image of a character from a text prompt.

    - **aspect_ratio**: "16:9", "1:1" (default) or "9:16".
    - **is_initial**: the first image of a new character; it becomes the thumbnail.

    Blocks until the provider returns and the image is stored.
    """
    return generate_text_to_image(
        db,
        blobs,
        client_factory,
        user_id=user_id,
        api_key=get_api_key(db, user_id, cipher),
        character_id=payload.character_id,
        prompt=payload.prompt,
        aspect_ratio=payload.aspect_ratio,
        is_initial=payload.is_initial,
    )

@router.post("/{image_id}/variations", response_model=GenerationResponse)
def image_variation(
    image_id: str,
    payload: ImageVariationRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    cipher: CredentialCipher = Depends(get_cipher),
    client_factory=Depends(get_client_factory),
):
    """
    Generate an image-to-image variation of an existing image.
    **strength** (0-1, default 0.7) controls how far it drifts from the source.
    """
    return generate_image_variation(
        db,
        blobs,
        client_factory,
        user_id=user_id,
        api_key=get_api_key(db, user_id, cipher),
        image_id=image_id,
        prompt=payload.prompt,
        strength=payload.strength,
    )

@router.get("/{image_id}", response_model=Optional[ImageDetailResponse])
def read_image(
    image_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    return images.get_image_by_id(db, blobs, user_id, image_id)

@router.delete("/{image_id}")
def delete_image(
    image_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    images.delete_image(db, blobs, user_id, image_id)
    return {"detail": "Image deleted successfully."}
