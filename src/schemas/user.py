from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# -------------------- Requests --------------------

class LoginRequest(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str


class RefreshTokenRequest(CamelModel):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    old_password: str
    new_password: str


class UpdateAccountRequest(CamelModel):
    full_name: Optional[str] = None
    email: Optional[str] = None


# -------------------- Public projections --------------------

class UserOut(CamelModel):
    """A user as clients see it; password and refresh token are never part of it."""

    id: str
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: Optional[str] = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ChannelProfileOut(CamelModel):
    id: str
    full_name: str
    username: str
    subscribers_count: int
    subscribed_to_count: int
    is_subscribed: bool
    cover_image: Optional[str] = ""
    avatar: str
    email: str
    created_at: Optional[datetime] = None


class VideoOwnerOut(CamelModel):
    full_name: str
    username: str
    avatar: str


class WatchedVideoOut(CamelModel):
    id: str
    video_file: str
    thumbnail: str
    title: str
    description: str
    duration: float
    views: int = Field(default=0)
    is_published: bool = True
    owner: Optional[VideoOwnerOut] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
