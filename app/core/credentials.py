# app/core/credentials.py
import logging
import os
from typing import Optional, Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from sqlalchemy.orm import Session

from app.core.config import API_KEY_ENCRYPTION_SECRET, API_KEY_PREFIXES
from app.core.errors import user_not_authenticated, validation_error
from app.models.base import utcnow
from app.models.user import User

logger = logging.getLogger(__name__)

IV_SIZE = 12  # bytes, the AES-GCM standard nonce length


class CredentialCipher:
    """
    AES-256-GCM encryption of third-party API keys.

    The 256-bit key is derived from a configured secret with HKDF, so the
    secret itself can be any string. Every encryption uses a fresh random IV.
    """

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("Encryption secret must not be empty")
        key = HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=None,
            info=b"character-studio api key",
        ).derive(secret.encode("utf-8"))
        self._aesgcm = AESGCM(key)

    def encrypt(self, plaintext: str) -> Tuple[bytes, bytes]:
        iv = os.urandom(IV_SIZE)
        ciphertext = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        return ciphertext, iv

    def decrypt(self, ciphertext: bytes, iv: bytes) -> str:
        return self._aesgcm.decrypt(iv, ciphertext, None).decode("utf-8")


_default_cipher: Optional[CredentialCipher] = None


def get_cipher() -> CredentialCipher:
    """
    FastAPI dependency returning the cipher built from API_KEY_ENCRYPTION_SECRET.
    """
    global _default_cipher
    if _default_cipher is None:
        _default_cipher = CredentialCipher(API_KEY_ENCRYPTION_SECRET)
    return _default_cipher


def mask_api_key(api_key: str) -> str:
    """Keep the first 3 and last 4 characters, star out the rest."""
    if len(api_key) <= 7:
        return "*" * len(api_key)
    return f"{api_key[:3]}{'*' * (len(api_key) - 7)}{api_key[-4:]}"


def store_api_key(db: Session, user_id: Optional[str], api_key: str, cipher: CredentialCipher) -> None:
    """
    Encrypt and save the caller's API key, replacing any previous one.
    """
    if not user_id:
        raise user_not_authenticated()

    api_key = (api_key or "").strip()
    if not api_key:
        raise validation_error("API key is required")
    if not api_key.startswith(API_KEY_PREFIXES):
        raise validation_error("Invalid Replicate API key format")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise user_not_authenticated()

    user.encrypted_api_key, user.api_key_iv = cipher.encrypt(api_key)
    user.updated_at = utcnow()
    db.commit()
    logger.info("Stored API key for user %s", user_id)


def get_api_key(db: Session, user_id: Optional[str], cipher: CredentialCipher) -> Optional[str]:
    """
    Plaintext API key of the caller, or None when unauthenticated or not set.
    Absence means "not configured", never an error.
    """
    if not user_id:
        return None

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.has_api_key:
        return None

    try:
        return cipher.decrypt(user.encrypted_api_key, user.api_key_iv)
    except (InvalidTag, ValueError):
        logger.warning("Stored API key for user %s could not be decrypted", user_id)
        return None


def delete_api_key(db: Session, user_id: Optional[str]) -> None:
    if not user_id:
        raise user_not_authenticated()

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise user_not_authenticated()

    user.encrypted_api_key = None
    user.api_key_iv = None
    user.updated_at = utcnow()
    db.commit()
    logger.info("Removed API key for user %s", user_id)
