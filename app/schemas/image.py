# app/schemas/image.py
from datetime import datetime
from pydantic import BaseModel
from typing import Optional

from app.schemas.character import CharacterRecord

class ImageResponse(BaseModel):
    id: str
    character_id: str
    storage_id: str
    url: Optional[str] = None
    user_prompt: str
    full_prompt: str
    generation_type: str
    source_image_id: Optional[str] = None
    strength: Optional[float] = None
    model_id: str
    width: int
    height: int
    aspect_ratio: str
    created_at: datetime

class ImageDetailResponse(ImageResponse):
    character: CharacterRecord

class TextToImageRequest(BaseModel):
    character_id: str
    prompt: str
    aspect_ratio: Optional[str] = None  # "16:9", "1:1" (default) or "9:16"
    is_initial: bool = False

class ImageVariationRequest(BaseModel):
    prompt: str
    strength: Optional[float] = None  # 0-1, defaults to 0.7

class GenerationResponse(BaseModel):
    id: str
    storage_id: str
    url: Optional[str] = None
