# app/schemas/character.py
from datetime import datetime
from pydantic import BaseModel
from typing import Optional

class CharacterCreateRequest(BaseModel):
    name: str
    personality: str
    appearance: str
    setting: Optional[str] = None
    age: Optional[str] = None
    special_traits: Optional[str] = None
    description: Optional[str] = None

class CharacterUpdateRequest(BaseModel):
    # Only fields present in the request body are applied
    name: Optional[str] = None
    personality: Optional[str] = None
    appearance: Optional[str] = None
    setting: Optional[str] = None
    age: Optional[str] = None
    special_traits: Optional[str] = None
    description: Optional[str] = None

class CharacterCreateResponse(BaseModel):
    character_id: str
    slug: str

class CharacterRecord(BaseModel):
    id: str
    user_id: str
    name: str
    slug: str
    personality: str
    appearance: str
    setting: Optional[str] = None
    age: Optional[str] = None
    special_traits: Optional[str] = None
    description: Optional[str] = None
    thumbnail_image_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class CharacterResponse(CharacterRecord):
    image_count: int
    video_count: int
    thumbnail_url: Optional[str] = None
