# app/schemas/video.py
from datetime import datetime
from pydantic import BaseModel
from typing import Optional

from app.schemas.character import CharacterRecord
from app.schemas.image import ImageResponse

class VideoResponse(BaseModel):
    id: str
    character_id: str
    storage_id: str
    url: Optional[str] = None
    source_image_id: str
    source_image_url: Optional[str] = None
    source_image_prompt: Optional[str] = None
    prompt: str
    model_id: str
    width: int
    height: int
    duration: int
    fps: Optional[int] = None
    created_at: datetime

class VideoDetailResponse(VideoResponse):
    character: CharacterRecord
    source_image: Optional[ImageResponse] = None

class VideoGenerateRequest(BaseModel):
    image_id: str
    prompt: str
    duration: float  # seconds, 5 or 10
