from typing import Optional

from sqlalchemy import exists, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from src.core.errors import DuplicateIdentity
from src.core.security import verify_password
from src.models.subscription import Subscription
from src.models.user import User, WatchHistoryEntry
from src.models.video import Video
from src.schemas.user import ChannelProfileOut, VideoOwnerOut, WatchedVideoOut


def _normalize(value: Optional[str]) -> Optional[str]:
    return value.strip().lower() if value else None


class UserStore:
    """Persistence for user records and the two read-side aggregations."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_identity(self, username: Optional[str] = None, email: Optional[str] = None) -> Optional[User]:
        clauses = []
        if _normalize(username):
            clauses.append(User.username == _normalize(username))
        if _normalize(email):
            clauses.append(User.email == _normalize(email))
        if not clauses:
            return None
        return self.db.query(User).filter(or_(*clauses)).first()

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def create(self, *, username: str, email: str, full_name: str, password: str, avatar: str, cover_image: str = "") -> User:
        if self.find_by_identity(username=username, email=email):
            raise DuplicateIdentity()

        user = User(
            username=username,
            email=email,
            full_name=full_name,
            password=password,
            avatar=avatar,
            cover_image=cover_image or "",
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateIdentity() from e
        self.db.refresh(user)
        return user

    def update_by_id(self, user_id: str, **patch) -> Optional[User]:
        user = self.find_by_id(user_id)
        if user is None:
            return None
        for field, value in patch.items():
            setattr(user, field, value)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateIdentity("User with this email already exists!") from e
        self.db.refresh(user)
        return user

    def set_refresh_token(self, user: User, token: Optional[str]) -> None:
        user.refresh_token = token
        self.db.commit()

    def verify_password(self, user: User, candidate: Optional[str]) -> bool:
        return verify_password(candidate, user.password)

    def channel_profile(self, username: str, viewer_id: Optional[str]) -> Optional[ChannelProfileOut]:
        subscribers_count = (
            select(func.count(Subscription.id))
            .where(Subscription.channel_id == User.id)
            .scalar_subquery()
        )
        subscribed_to_count = (
            select(func.count(Subscription.id))
            .where(Subscription.subscriber_id == User.id)
            .scalar_subquery()
        )
        is_subscribed = exists().where(
            Subscription.channel_id == User.id,
            Subscription.subscriber_id == viewer_id,
        )

        row = self.db.execute(
            select(
                User,
                subscribers_count.label("subscribers_count"),
                subscribed_to_count.label("subscribed_to_count"),
                is_subscribed.label("is_subscribed"),
            ).where(User.username == _normalize(username))
        ).first()
        if row is None:
            return None

        channel = row.User
        return ChannelProfileOut(
            id=channel.id,
            full_name=channel.full_name,
            username=channel.username,
            subscribers_count=row.subscribers_count,
            subscribed_to_count=row.subscribed_to_count,
            is_subscribed=bool(viewer_id) and bool(row.is_subscribed),
            cover_image=channel.cover_image,
            avatar=channel.avatar,
            email=channel.email,
            created_at=channel.created_at,
        )

    def watch_history(self, user_id: str) -> list[WatchedVideoOut]:
        entries = (
            self.db.query(WatchHistoryEntry)
            .options(joinedload(WatchHistoryEntry.video).joinedload(Video.owner))
            .filter(WatchHistoryEntry.user_id == user_id)
            .order_by(WatchHistoryEntry.position)
            .all()
        )

        history = []
        for entry in entries:
            video = entry.video
            if video is None:
                continue
            owner = VideoOwnerOut.model_validate(video.owner) if video.owner else None
            history.append(WatchedVideoOut(
                id=video.id,
                video_file=video.video_file,
                thumbnail=video.thumbnail,
                title=video.title,
                description=video.description,
                duration=video.duration,
                views=video.views,
                is_published=video.is_published,
                owner=owner,
                created_at=video.created_at,
                updated_at=video.updated_at,
            ))
        return history
