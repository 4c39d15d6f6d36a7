# app/models/auth_session.py
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import Base, utcnow

class AuthSession(Base):
    __tablename__ = "sessions"

    token = Column(String, primary_key=True, index=True)  # secrets.token_urlsafe
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationship
    user = relationship("User", back_populates="sessions")
