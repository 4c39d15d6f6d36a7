# app/models/user.py
from sqlalchemy import Column, String, DateTime, LargeBinary
from sqlalchemy.orm import relationship
from app.models.base import Base, utcnow

class User(Base):
    __tablename__ = "users"
    
    id = Column(String, primary_key=True, index=True)   # Use a UUID string
    email = Column(String, unique=True, nullable=False)

    # Replicate API key, AES-GCM encrypted; both set or both null
    encrypted_api_key = Column(LargeBinary, nullable=True)
    api_key_iv = Column(LargeBinary, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    
    # Relationships
    characters = relationship("Character", back_populates="owner", cascade="all, delete-orphan")
    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")

    @property
    def has_api_key(self) -> bool:
        return self.encrypted_api_key is not None and self.api_key_iv is not None
