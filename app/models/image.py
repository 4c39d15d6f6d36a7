# app/models/image.py
from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from app.models.base import Base, utcnow

GENERATION_TYPES = ("initial", "text-to-image", "image-to-image")

class Image(Base):
    __tablename__ = "images"
    __table_args__ = (
        Index("ix_images_character_created", "character_id", "created_at"),
    )

    id = Column(String, primary_key=True, index=True)  # UUID as string
    character_id = Column(String, ForeignKey("characters.id"), nullable=False, index=True)
    storage_id = Column(String, nullable=False)

    user_prompt = Column(String, nullable=False)  # what the user typed
    full_prompt = Column(String, nullable=False)  # what was sent to the model

    generation_type = Column(String, nullable=False)  # one of GENERATION_TYPES

    # image-to-image lineage
    source_image_id = Column(String, nullable=True, index=True)
    strength = Column(Float, nullable=True)

    model_id = Column(String, nullable=False)
    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)
    aspect_ratio = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationship
    character = relationship("Character", back_populates="images")
