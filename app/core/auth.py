# app/core/auth.py
import logging
import secrets
from typing import Optional, Tuple
from uuid import uuid4

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import user_not_authenticated
from app.models.auth_session import AuthSession
from app.models.user import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def login(db: Session, email: str) -> Tuple[User, str]:
    """
    Look up the user by email, creating it on first login, and issue a new
    session token for it.
    """
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user:
        user = User(id=str(uuid4()), email=email)
        db.add(user)
        logger.info("Created user %s", user.id)

    token = secrets.token_urlsafe(32)
    db.add(AuthSession(token=token, user_id=user.id))
    db.commit()
    db.refresh(user)
    return user, token


def logout(db: Session, token: str) -> None:
    db.query(AuthSession).filter(AuthSession.token == token).delete()
    db.commit()


def resolve_principal(db: Session, token: Optional[str]) -> Optional[str]:
    """Return the user id behind a session token, or None."""
    if not token:
        return None
    session = db.query(AuthSession).filter(AuthSession.token == token).first()
    if not session:
        return None
    return session.user_id


def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[str]:
    """
    Dependency for read routes: the caller's user id, or None when the
    request carries no valid session.
    """
    token = credentials.credentials if credentials else None
    return resolve_principal(db, token)


def get_current_user_id(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    """
    Dependency for mutations and actions: fails with USER_NOT_AUTHENTICATED.
    """
    if not user_id:
        raise user_not_authenticated()
    return user_id
