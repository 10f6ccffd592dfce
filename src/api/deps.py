from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from src.core.config import Settings, get_settings
from src.core.errors import InvalidToken, Unauthorized
from src.db import get_db
from src.models.user import User
from src.services.media_service import MediaRelay
from src.services.token_service import TokenService
from src.services.user_store import UserStore


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings)


def get_media_relay(settings: Settings = Depends(get_settings)) -> MediaRelay:
    return MediaRelay(settings)


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


def _access_token_from(request: Request) -> Optional[str]:
    token = request.cookies.get("accessToken")
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def get_current_user(
    request: Request,
    store: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    token = _access_token_from(request)
    if not token:
        raise Unauthorized("Unauthorized request")

    payload = tokens.verify_access_token(token)
    user = store.find_by_id(payload["_id"])
    if user is None:
        raise InvalidToken("Invalid Access Token")
    return user
