import os

os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")
os.environ.setdefault("CLOUDINARY_CLOUD_NAME", "demo")
os.environ.setdefault("CLOUDINARY_API_KEY", "key")
os.environ.setdefault("CLOUDINARY_API_SECRET", "secret")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.api.deps import get_media_relay
from src.core.config import get_settings
from src.db import get_db
from src.main import app
from src.models.basemodel import Base
from src.models.user import User
from src.services.media_service import MediaRelay, StoredMedia, UploadFailure
from src.services.user_store import UserStore


class FakeMediaRelay(MediaRelay):
    """Keeps the real temp-file handling but never talks to Cloudinary."""

    def __init__(self, settings, temp_dir, session_factory):
        super().__init__(settings)
        self.temp_dir = Path(temp_dir)
        self.session_factory = session_factory
        self.fail_uploads = False
        self.uploaded_paths = []
        self.removed = []
        self._counter = 0

    def upload(self, local_path):
        try:
            self.uploaded_paths.append(Path(local_path))
            if self.fail_uploads:
                return UploadFailure("upload disabled")
            self._counter += 1
            public_id = f"vidtube/media{self._counter}"
            url = f"https://res.cloudinary.com/demo/image/upload/v17000{self._counter}/{public_id}.png"
            return StoredMedia(url=url, public_id=public_id)
        finally:
            self.remove_local(local_path)

    def remove(self, public_id):
        with self.session_factory() as session:
            stored = set()
            for avatar, cover in session.query(User.avatar, User.cover_image):
                stored.update([avatar, cover])
        self.removed.append((public_id, stored))


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    return UserStore(db_session)


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def relay(settings, tmp_path, session_factory):
    return FakeMediaRelay(settings, tmp_path / "temp", session_factory)


@pytest.fixture
def client(session_factory, relay):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_relay] = lambda: relay
    yield TestClient(app, base_url="https://testserver")
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    def _register(username="alice", email="alice@x.com", full_name="Alice Doe", password="s3cret!", cover=False):
        files = {"avatar": ("avatar.png", b"\x89PNG avatar", "image/png")}
        if cover:
            files["coverImage"] = ("cover.png", b"\x89PNG cover", "image/png")
        return client.post(
            "/api/v1/users/register",
            data={"username": username, "email": email, "fullName": full_name, "password": password},
            files=files,
        )
    return _register


@pytest.fixture
def login(client):
    def _login(username="alice", password="s3cret!"):
        return client.post("/api/v1/users/login", json={"username": username, "password": password})
    return _login
