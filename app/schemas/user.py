# app/schemas/user.py
from datetime import datetime
from pydantic import BaseModel, EmailStr
from typing import Optional

class UserResponse(BaseModel):
    id: str
    email: EmailStr
    has_api_key: bool
    created_at: datetime

class ApiKeyResponse(BaseModel):
    configured: bool
    api_key: Optional[str] = None
    masked_key: Optional[str] = None
