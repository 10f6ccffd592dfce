from typing import Any, Optional


class AppError(Exception):
    """Base for every failure a handler reports to the client."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, errors: Optional[list[Any]] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors or []
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "All fields are required!"


class DuplicateIdentity(AppError):
    status_code = 400
    default_message = "User with this email or username already exists!"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class InvalidCredentials(AppError):
    status_code = 401
    default_message = "Invalid Login Credentials!"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Unauthorized request"


class InvalidToken(AppError):
    status_code = 401
    default_message = "Invalid Refresh Token!"


class TokenReuseOrExpired(AppError):
    status_code = 401
    default_message = "Refresh token is expired or used!"


class UploadFailed(AppError):
    status_code = 400
    default_message = "Error while uploading file!"


class Unexpected(AppError):
    status_code = 500
    default_message = "Internal Server Error"
