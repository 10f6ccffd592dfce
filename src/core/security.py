from typing import Optional
from passlib.context import CryptContext
from src.core.config import get_settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=get_settings().BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: Optional[str], hashed: Optional[str]) -> bool:
    if not password or not hashed:
        return False
    return pwd_context.verify(password, hashed)
