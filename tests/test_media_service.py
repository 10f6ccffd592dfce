import cloudinary.uploader
import pytest

from src.services.media_service import MediaRelay, StoredMedia, UploadFailure, public_id_from_url


@pytest.fixture
def media(settings, tmp_path):
    relay = MediaRelay(settings)
    relay.temp_dir = tmp_path
    return relay


@pytest.fixture
def local_file(tmp_path):
    path = tmp_path / "avatar.png"
    path.write_bytes(b"\x89PNG")
    return path


@pytest.mark.parametrize("url, expected", [
    ("http://res.cloudinary.com/demo/image/upload/v1234/folder/myImage.jpg", "folder/myImage"),
    ("https://res.cloudinary.com/demo/image/upload/sample.png", "sample"),
    ("https://res.cloudinary.com/demo/image/upload/v99/a/b/c.webp", "a/b/c"),
    ("https://example.com/no-upload-segment.png", None),
    ("", None),
    (None, None),
])
def test_public_id_from_url(url, expected):
    assert public_id_from_url(url) == expected


def test_upload_success_removes_temp_file(media, local_file, monkeypatch):
    calls = []

    def fake_upload(path, **options):
        calls.append((path, options))
        return {"secure_url": "https://res.cloudinary.com/demo/image/upload/v1/x.png", "public_id": "x"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)

    result = media.upload(local_file)

    assert result == StoredMedia(url="https://res.cloudinary.com/demo/image/upload/v1/x.png", public_id="x")
    assert not local_file.exists()
    path, options = calls[0]
    assert path == str(local_file)
    assert options["resource_type"] == "auto"
    assert options["cloud_name"] == "demo"
    assert options["timeout"] == media.options["timeout"]


def test_upload_failure_is_a_result_not_an_exception(media, local_file, monkeypatch):
    def broken_upload(path, **options):
        raise RuntimeError("network down")

    monkeypatch.setattr(cloudinary.uploader, "upload", broken_upload)

    result = media.upload(local_file)

    assert isinstance(result, UploadFailure)
    assert "network down" in result.reason
    assert not local_file.exists()


def test_upload_without_path(media):
    assert isinstance(media.upload(None), UploadFailure)


def test_remove_swallows_errors(media, monkeypatch):
    def broken_destroy(public_id, **options):
        raise RuntimeError("gone")

    monkeypatch.setattr(cloudinary.uploader, "destroy", broken_destroy)

    media.remove("folder/img")


def test_remove_targets_images(media, monkeypatch):
    calls = []
    monkeypatch.setattr(
        cloudinary.uploader, "destroy",
        lambda public_id, **options: calls.append((public_id, options["resource_type"])) or {"result": "ok"},
    )

    media.remove("folder/img")
    media.remove(None)

    assert calls == [("folder/img", "image")]
