from src.models.basemodel import Base, new_id
from src.core.security import hash_password
from sqlalchemy import (
    Column, String, Text, ForeignKey,
    DateTime, Integer, UniqueConstraint
)
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    username = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(255), nullable=False, index=True)

    avatar = Column(Text, nullable=False)
    cover_image = Column(Text, default="")

    # Always a bcrypt hash, see _hash_password
    password = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    watch_history = relationship(
        "WatchHistoryEntry",
        back_populates="user",
        order_by="WatchHistoryEntry.position",
        cascade="all, delete-orphan"
    )
    videos = relationship("Video", back_populates="owner")

    @validates("username", "email")
    def _normalize_identity(self, key, value):
        return value.strip().lower() if value is not None else value

    @validates("full_name")
    def _strip_full_name(self, key, value):
        return value.strip() if value is not None else value

    @validates("password")
    def _hash_password(self, key, value):
        # Every write path assigns plaintext; the hash is computed before the row is flushed.
        return hash_password(value)


class WatchHistoryEntry(Base):
    __tablename__ = "watch_history"
    __table_args__ = (
        UniqueConstraint("user_id", "position", name="unique_user_history_position"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(String(36), ForeignKey("videos.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)

    user = relationship("User", back_populates="watch_history")
    video = relationship("Video")
