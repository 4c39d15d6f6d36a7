# app/models/video.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from app.models.base import Base, utcnow

class Video(Base):
    __tablename__ = "videos"
    __table_args__ = (
        Index("ix_videos_character_created", "character_id", "created_at"),
    )

    id = Column(String, primary_key=True, index=True)  # UUID as string
    character_id = Column(String, ForeignKey("characters.id"), nullable=False, index=True)
    storage_id = Column(String, nullable=False)

    # Image that was animated
    source_image_id = Column(String, nullable=False, index=True)

    prompt = Column(String, nullable=False)  # e.g. "walking through a field"

    model_id = Column(String, nullable=False)
    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False)  # seconds
    fps = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationship
    character = relationship("Character", back_populates="videos")
