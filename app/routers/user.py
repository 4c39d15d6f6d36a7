# app/routers/user.py
from fastapi import APIRouter, Depends, Form
from sqlalchemy.orm import Session

from app.core.auth import get_current_user_id
from app.core.credentials import (
    CredentialCipher,
    delete_api_key,
    get_api_key,
    get_cipher,
    mask_api_key,
    store_api_key,
)
from app.core.database import get_db
from app.core.errors import user_not_authenticated
from app.models.user import User
from app.schemas.user import ApiKeyResponse, UserResponse

router = APIRouter()

@router.get("/me", response_model=UserResponse)
def read_current_user(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise user_not_authenticated()
    return UserResponse(
        id=user.id,
        email=user.email,
        has_api_key=user.has_api_key,
        created_at=user.created_at,
    )

@router.get("/me/api-key", response_model=ApiKeyResponse)
def read_api_key(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    cipher: CredentialCipher = Depends(get_cipher),
):
    """
    The caller's decrypted Replicate API key, plus a masked copy for display.
    `configured` is false when no key is stored.
    """
    api_key = get_api_key(db, user_id, cipher)
    if not api_key:
        return ApiKeyResponse(configured=False)
    return ApiKeyResponse(configured=True, api_key=api_key, masked_key=mask_api_key(api_key))

@router.put("/me/api-key")
def update_api_key(
    api_key: str = Form(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    cipher: CredentialCipher = Depends(get_cipher),
):
    """
    Encrypt and store the caller's Replicate API key, replacing any previous one.

    - **api_key**: must start with `r8_` or `r_`.
    """
    store_api_key(db, user_id, api_key, cipher)
    return {"detail": "API key saved successfully."}

@router.delete("/me/api-key")
def remove_api_key(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    delete_api_key(db, user_id)
    return {"detail": "API key removed successfully."}
