# app/routers/auth.py
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.auth import bearer_scheme, login, logout
from app.core.database import get_db
from app.core.errors import user_not_authenticated
from app.schemas.auth import AuthRequest, AuthResponse

router = APIRouter()

@router.post("/login", response_model=AuthResponse)
def auth(payload: AuthRequest, db: Session = Depends(get_db)):
    """
    Receives an email, checks if the user exists.
    If not, creates the user.
    Returns the user's id along with a new bearer session token.
    """
    user, token = login(db, payload.email)
    return AuthResponse(
        user_id=user.id,
        email=user.email,
        token=token,
        has_api_key=user.has_api_key,
    )

@router.post("/logout")
def sign_out(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
):
    """
    Revoke the session token sent in the Authorization header.
    """
    if not credentials:
        raise user_not_authenticated()
    logout(db, credentials.credentials)
    return {"detail": "Logged out successfully."}
