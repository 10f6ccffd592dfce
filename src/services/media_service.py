import re
from dataclasses import dataclass
from typing import Optional, Union

import cloudinary.uploader

from src.core.config import Settings
from src.core.logging import logger
from src.services.file_service import FileService

PUBLIC_ID_PATTERN = re.compile(r"/upload/(?:v\d+/)?(.+)\.[a-z]+$")


@dataclass(frozen=True)
class StoredMedia:
    url: str
    public_id: str


@dataclass(frozen=True)
class UploadFailure:
    reason: str


UploadResult = Union[StoredMedia, UploadFailure]


def public_id_from_url(url: Optional[str]) -> Optional[str]:
    """Derive the Cloudinary public id from a delivery URL.

    ``http://res.cloudinary.com/demo/image/upload/v1234/folder/img.jpg`` -> ``folder/img``
    """
    if not url:
        return None
    match = PUBLIC_ID_PATTERN.search(url)
    return match.group(1) if match else None


class MediaRelay(FileService):
    def __init__(self, settings: Settings):
        super().__init__(settings.TEMP_UPLOAD_DIR)
        self.options = {
            "cloud_name": settings.CLOUDINARY_CLOUD_NAME,
            "api_key": settings.CLOUDINARY_API_KEY,
            "api_secret": settings.CLOUDINARY_API_SECRET,
            "timeout": settings.UPLOAD_TIMEOUT,
        }

    def upload(self, local_path) -> UploadResult:
        if not local_path:
            return UploadFailure("No file to upload")
        try:
            response = cloudinary.uploader.upload(str(local_path), resource_type="auto", **self.options)
            url = response.get("secure_url") or response.get("url")
            public_id = response.get("public_id")
            if not url or not public_id:
                return UploadFailure("Media host returned no url")
            return StoredMedia(url=url, public_id=public_id)
        except Exception as e:
            logger.error(f"Upload of {local_path} failed: {e}")
            return UploadFailure(str(e))
        finally:
            self.remove_local(local_path)

    def remove(self, public_id: Optional[str]) -> None:
        if not public_id:
            return
        try:
            result = cloudinary.uploader.destroy(public_id, resource_type="image", **self.options)
            logger.info(f"Deleted media {public_id}: {result.get('result')}")
        except Exception as e:
            logger.error(f"Error deleting media {public_id}: {e}")
