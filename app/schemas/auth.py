# app/schemas/auth.py
from pydantic import BaseModel, EmailStr

class AuthRequest(BaseModel):
    email: EmailStr

class AuthResponse(BaseModel):
    user_id: str
    email: EmailStr
    token: str  # send back as "Authorization: Bearer <token>"
    has_api_key: bool
