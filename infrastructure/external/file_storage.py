# infrastructure/external/file_storage.py
import logging
import os
from typing import BinaryIO, Optional

from core.errors import InternalServerError, ValidationError

logger = logging.getLogger(__name__)

class FileStorage:
    """Local filesystem store for generated documents, addressed by relative keys."""

    def __init__(self, base_dir: str = "downloads"):
        self.base_dir = os.path.abspath(base_dir)
        if not os.path.exists(self.base_dir):
            os.makedirs(self.base_dir, exist_ok=True)
            logger.info(f"Created storage directory: {self.base_dir}")

    def _resolve(self, key: str) -> str:
        if not key or not isinstance(key, str):
            raise ValidationError("Storage key must be a non-empty string")
        full_path = os.path.abspath(os.path.join(self.base_dir, key))
        if os.path.commonpath([full_path, self.base_dir]) != self.base_dir:
            raise ValidationError(f"Storage key escapes the storage directory: {key}")
        return full_path

    def save(self, key: str, content: bytes) -> str:
        """Write `content` under `key`, replacing any previous file, and return the key."""
        full_path = self._resolve(key)
        try:
            os.makedirs(os.path.dirname(full_path), exist_ok=True)
            tmp_path = f"{full_path}.tmp"
            with open(tmp_path, "wb") as buffer:
                buffer.write(content)
            os.replace(tmp_path, full_path)
            logger.info(f"File saved: {full_path} ({len(content)} bytes)")
            return key
        except OSError as e:
            logger.error(f"Failed to save file: {str(e)}", exc_info=True)
            raise InternalServerError(f"Failed to save file: {str(e)}")

    def exists(self, key: Optional[str]) -> bool:
        if not key:
            return False
        return os.path.isfile(self._resolve(key))

    def open(self, key: str) -> BinaryIO:
        full_path = self._resolve(key)
        try:
            return open(full_path, "rb")
        except FileNotFoundError:
            logger.warning(f"File not found: {full_path}")
            raise
        except OSError as e:
            logger.error(f"Failed to open file: {str(e)}", exc_info=True)
            raise InternalServerError(f"Failed to open file: {str(e)}")

    def delete(self, key: str) -> None:
        """Delete a file from the storage directory."""
        full_path = self._resolve(key)
        try:
            if os.path.exists(full_path):
                os.remove(full_path)
                logger.info(f"File deleted: {full_path}")
            else:
                logger.warning(f"File not found: {full_path}")
        except OSError as e:
            logger.error(f"Failed to delete file: {str(e)}", exc_info=True)
            raise InternalServerError(f"Failed to delete file: {str(e)}")
