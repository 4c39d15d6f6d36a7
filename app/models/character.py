# app/models/character.py
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.models.base import Base, utcnow

class Character(Base):
    __tablename__ = "characters"
    __table_args__ = (
        # Closes the read-then-insert race on slugs
        UniqueConstraint("user_id", "slug", name="uq_characters_user_slug"),
    )

    id = Column(String, primary_key=True, index=True)  # UUID as string
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, index=True)

    # Traits injected into every generation prompt
    personality = Column(String, nullable=False)
    appearance = Column(String, nullable=False)
    setting = Column(String, nullable=True)
    age = Column(String, nullable=True)
    special_traits = Column(String, nullable=True)

    description = Column(String, nullable=True)

    # No FK: images reference characters, this would make the pair circular
    thumbnail_image_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    owner = relationship("User", back_populates="characters")
    images = relationship("Image", back_populates="character")
    videos = relationship("Video", back_populates="character")
