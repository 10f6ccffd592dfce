import secrets
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from src.api.deps import get_current_user, get_media_relay, get_token_service, get_user_store
from src.core.config import Settings, get_settings
from src.core.errors import (
    DuplicateIdentity, InvalidCredentials, InvalidToken, NotFound,
    TokenReuseOrExpired, Unauthorized, UploadFailed, ValidationError
)
from src.core.logging import logger
from src.core.responses import api_response
from src.models.user import User
from src.schemas.user import (
    ChangePasswordRequest, LoginRequest, RefreshTokenRequest,
    UpdateAccountRequest, UserOut
)
from src.services.media_service import MediaRelay, StoredMedia, public_id_from_url
from src.services.token_service import TokenService
from src.services.user_store import UserStore

router = APIRouter(prefix="/users", tags=["users"])

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _public(user: User) -> dict:
    return UserOut.model_validate(user).dump()


def _has_file(file: Optional[UploadFile]) -> bool:
    return file is not None and bool(file.filename)


def _set_auth_cookies(response: JSONResponse, settings: Settings, access_token: str, refresh_token: str):
    response.set_cookie(ACCESS_COOKIE, access_token, httponly=True, secure=settings.COOKIE_SECURE)
    response.set_cookie(REFRESH_COOKIE, refresh_token, httponly=True, secure=settings.COOKIE_SECURE)


def _rotate_tokens(user: User, store: UserStore, tokens: TokenService) -> tuple[str, str]:
    access_token, refresh_token = tokens.issue_pair(user)
    store.set_refresh_token(user, refresh_token)
    return access_token, refresh_token


@router.post("/register")
def register_user(
    username: Optional[str] = Form(None),
    full_name: Optional[str] = Form(None, alias="fullName"),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    store: UserStore = Depends(get_user_store),
    relay: MediaRelay = Depends(get_media_relay),
):
    if any(not (field or "").strip() for field in (username, full_name, email, password)):
        raise ValidationError("All fields are required!")

    if store.find_by_identity(username=username, email=email):
        raise DuplicateIdentity()

    if not _has_file(avatar):
        raise ValidationError("Avatar file is required!")

    avatar_media = relay.upload(relay.save_upload(avatar))
    if not isinstance(avatar_media, StoredMedia):
        raise UploadFailed("Avatar upload failed!")

    uploaded = [avatar_media]
    try:
        cover_url = ""
        if _has_file(cover_image):
            cover_media = relay.upload(relay.save_upload(cover_image))
            if isinstance(cover_media, StoredMedia):
                uploaded.append(cover_media)
                cover_url = cover_media.url

        user = store.create(
            username=username,
            email=email,
            full_name=full_name,
            password=password,
            avatar=avatar_media.url,
            cover_image=cover_url,
        )
    except Exception:
        # Nothing references these objects yet.
        for media in uploaded:
            relay.remove(media.public_id)
        raise

    logger.info(f"Registered user {user.id} ({user.username})")
    return api_response(201, _public(user), "User registered successfully!")


@router.post("/login")
def login_user(
    payload: LoginRequest,
    store: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
):
    if not (payload.username or payload.email):
        raise ValidationError("Username or email is required!")

    user = store.find_by_identity(username=payload.username, email=payload.email)
    if user is None:
        raise NotFound("User does not exist!")

    if not store.verify_password(user, payload.password):
        raise InvalidCredentials("Invalid Login Credentials!")

    access_token, refresh_token = _rotate_tokens(user, store, tokens)
    logger.info(f"User {user.id} logged in")

    response = api_response(
        200,
        {"user": _public(user), "accessToken": access_token, "refreshToken": refresh_token},
        "User Logged In Successfully!",
    )
    _set_auth_cookies(response, settings, access_token, refresh_token)
    return response


@router.post("/logout")
def logout_user(
    user: User = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
    settings: Settings = Depends(get_settings),
):
    store.set_refresh_token(user, None)
    logger.info(f"User {user.id} logged out")

    response = api_response(200, {}, "User Logged Out Successfully!")
    response.delete_cookie(ACCESS_COOKIE, httponly=True, secure=settings.COOKIE_SECURE)
    response.delete_cookie(REFRESH_COOKIE, httponly=True, secure=settings.COOKIE_SECURE)
    return response


@router.post("/refresh-token")
def refresh_access_token(
    request: Request,
    payload: Optional[RefreshTokenRequest] = Body(None),
    store: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
):
    incoming = request.cookies.get(REFRESH_COOKIE) or (payload.refresh_token if payload else None)
    if not incoming:
        raise Unauthorized("Unauthorized request")

    decoded = tokens.verify_refresh_token(incoming)
    user = store.find_by_id(decoded["_id"])
    if user is None:
        raise InvalidToken("Invalid Refresh Token!")

    if not user.refresh_token or not secrets.compare_digest(incoming, user.refresh_token):
        logger.warning(f"Rejected stale refresh token for user {user.id}")
        raise TokenReuseOrExpired("Refresh token is expired or used!")

    access_token, refresh_token = _rotate_tokens(user, store, tokens)
    logger.info(f"Rotated tokens for user {user.id}")

    response = api_response(
        200,
        {"accessToken": access_token, "refreshToken": refresh_token},
        "Access Token Refreshed!",
    )
    _set_auth_cookies(response, settings, access_token, refresh_token)
    return response


@router.post("/change-password")
def change_current_password(
    payload: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    if not payload.new_password:
        raise ValidationError("New password is required!")

    if not store.verify_password(user, payload.old_password):
        raise InvalidCredentials("Old Password is incorrect!", status_code=400)

    store.update_by_id(user.id, password=payload.new_password)
    logger.info(f"User {user.id} changed password")
    return api_response(200, {}, "Password Changed Successfully!")


@router.get("/current-user")
def get_current_user_profile(user: User = Depends(get_current_user)):
    return api_response(200, _public(user), "Current User Fetched Successfully!")


@router.patch("/update-account")
def update_account_details(
    payload: UpdateAccountRequest,
    user: User = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    if not (payload.full_name or "").strip() or not (payload.email or "").strip():
        raise ValidationError("All fields are required!")

    updated = store.update_by_id(user.id, full_name=payload.full_name, email=payload.email)
    return api_response(200, _public(updated), "Account Details Updated Successfully!")


def _replace_image(field: str, label: str, file: Optional[UploadFile], user: User, store: UserStore, relay: MediaRelay) -> User:
    if not _has_file(file):
        raise ValidationError(f"{label} file is missing!")

    media = relay.upload(relay.save_upload(file))
    if not isinstance(media, StoredMedia):
        raise UploadFailed(f"Error while uploading {label}!")

    old_url = getattr(user, field)
    updated = store.update_by_id(user.id, **{field: media.url})

    # Old object goes only after the row points at the new one.
    if old_url and old_url != media.url:
        relay.remove(public_id_from_url(old_url))

    logger.info(f"User {user.id} replaced {field}")
    return updated


@router.patch("/avatar")
def update_user_avatar(
    avatar: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
    relay: MediaRelay = Depends(get_media_relay),
):
    updated = _replace_image("avatar", "Avatar", avatar, user, store, relay)
    return api_response(200, _public(updated), "Avatar updated successfully")


@router.patch("/cover-image")
def update_user_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    user: User = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
    relay: MediaRelay = Depends(get_media_relay),
):
    updated = _replace_image("cover_image", "Cover Image", cover_image, user, store, relay)
    return api_response(200, _public(updated), "Cover Image updated successfully")


@router.get("/c/{username}")
def get_user_channel_profile(
    username: str,
    user: User = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    if not username.strip():
        raise ValidationError("Username is missing!")

    channel = store.channel_profile(username, viewer_id=user.id)
    if channel is None:
        raise NotFound("Channel not found!")
    return api_response(200, channel.dump(), "User Channel Fetched Successfully!")


@router.get("/history")
def get_watch_history(
    user: User = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    history = store.watch_history(user.id)
    return api_response(200, [entry.dump() for entry in history], "Watch History Fetched Successfully!")
