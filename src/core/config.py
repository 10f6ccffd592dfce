from datetime import timedelta
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./vidtube.db"

    # JWT
    ACCESS_TOKEN_SECRET: str
    ACCESS_TOKEN_EXPIRY: timedelta = timedelta(days=1)
    REFRESH_TOKEN_SECRET: str
    REFRESH_TOKEN_EXPIRY: timedelta = timedelta(days=10)

    # Cloudinary
    CLOUDINARY_CLOUD_NAME: str
    CLOUDINARY_API_KEY: str
    CLOUDINARY_API_SECRET: str

    # Local buffer for multipart uploads before they are relayed
    TEMP_UPLOAD_DIR: str = "public/temp"

    BCRYPT_ROUNDS: int = 10
    COOKIE_SECURE: bool = True

    # Timeouts in seconds
    REQUEST_TIMEOUT: float = 30.0
    UPLOAD_TIMEOUT: float = 60.0
    DB_TIMEOUT: float = 10.0

    # FastAPI
    PROJECT_NAME: str = "VidTube Users"
    API_PREFIX: str = "/api/v1"
    CORS_ORIGIN: list[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"
    PORT: int = 8000

    class Config:
        env_file = ".env"
        frozen = True

@lru_cache()
def get_settings() -> Settings:
    return Settings()
