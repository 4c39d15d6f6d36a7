from app.models.base import Base
from app.models.user import User
from app.models.auth_session import AuthSession
from app.models.blob import Blob
from app.models.character import Character
from app.models.image import Image
from app.models.video import Video

__all__ = ["Base", "User", "AuthSession", "Blob", "Character", "Image", "Video"]
