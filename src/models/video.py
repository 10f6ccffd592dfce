from src.models.basemodel import Base, new_id
from sqlalchemy import (
    Column, String, Text, ForeignKey,
    DateTime, Float, Integer, Boolean
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

class Video(Base):
    __tablename__ = "videos"

    id = Column(String(36), primary_key=True, default=new_id)
    video_file = Column(Text, nullable=False)
    thumbnail = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    duration = Column(Float, nullable=False)
    views = Column(Integer, default=0, nullable=False)
    is_published = Column(Boolean, default=True, nullable=False)

    owner_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="videos")
