import shutil
import uuid
from pathlib import Path

from fastapi import UploadFile

from src.core.logging import logger


class FileService:
    """Buffers multipart uploads to a local temp directory."""

    def __init__(self, temp_dir):
        self.temp_dir = Path(temp_dir)

    def save_upload(self, file: UploadFile) -> Path:
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        name = Path(file.filename or "upload").name
        temp_file_path = self.temp_dir / f"{uuid.uuid4()}_{name}"

        with temp_file_path.open("wb") as buffer:
            shutil.copyfileobj(file.file, buffer)

        logger.info(f"Buffered upload '{name}' to {temp_file_path}")
        return temp_file_path

    def remove_local(self, path) -> None:
        path = Path(path)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Could not remove temp file {path}: {e}")
