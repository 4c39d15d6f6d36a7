# app/models/blob.py
from sqlalchemy import Column, String, Integer, DateTime
from app.models.base import Base, utcnow

class Blob(Base):
    __tablename__ = "blobs"

    id = Column(String, primary_key=True, index=True)  # storage id, also the file name on disk
    content_type = Column(String, nullable=False)
    size = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
