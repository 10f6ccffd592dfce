import uuid
from datetime import datetime, timezone

import jwt

from src.core.config import Settings
from src.core.errors import InvalidToken, Unexpected

ALGORITHM = "HS256"


class TokenService:
    """Signs and verifies the access/refresh JWT pair bound to a user."""

    def __init__(self, settings: Settings):
        self.access_secret = settings.ACCESS_TOKEN_SECRET
        self.access_expiry = settings.ACCESS_TOKEN_EXPIRY
        self.refresh_secret = settings.REFRESH_TOKEN_SECRET
        self.refresh_expiry = settings.REFRESH_TOKEN_EXPIRY

    def _sign(self, claims: dict, secret: str, expiry) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + expiry,
        }
        try:
            return jwt.encode(payload, secret, algorithm=ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise Unexpected("Something went wrong while generating refresh and access token!") from e

    def issue_access_token(self, user) -> str:
        return self._sign(
            {
                "_id": user.id,
                "email": user.email,
                "username": user.username,
                "fullName": user.full_name,
            },
            self.access_secret,
            self.access_expiry,
        )

    def issue_refresh_token(self, user) -> str:
        return self._sign({"_id": user.id}, self.refresh_secret, self.refresh_expiry)

    def issue_pair(self, user) -> tuple[str, str]:
        return self.issue_access_token(user), self.issue_refresh_token(user)

    def _verify(self, token: str, secret: str, invalid_message: str) -> dict:
        try:
            payload = jwt.decode(token, secret, algorithms=[ALGORITHM], options={"require": ["exp", "_id"]})
        except jwt.ExpiredSignatureError as e:
            raise InvalidToken("Token has expired") from e
        except jwt.PyJWTError as e:
            raise InvalidToken(invalid_message) from e
        return payload

    def verify_access_token(self, token: str) -> dict:
        return self._verify(token, self.access_secret, "Invalid Access Token")

    def verify_refresh_token(self, token: str) -> dict:
        return self._verify(token, self.refresh_secret, "Invalid Refresh Token!")
