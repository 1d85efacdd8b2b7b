"""Local file storage for job description uploads."""

import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional
import logging

from core.config import settings
from core.exceptions import InvalidInputError
from core.utils.datetime import now, to_unix_millis
from core.utils.validators import sanitize_filename, validate_jd_upload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredFile:
    """An uploaded file already written to storage."""

    original_name: str
    path: str
    size: int
    content_type: Optional[str] = None


class LocalStorage:
    """Local file storage handler."""

    def __init__(
        self,
        base_path: Optional[str] = None,
        max_file_size: Optional[int] = None,
    ):
        """
        Initialize local storage.

        Args:
            base_path: Base directory for file storage
            max_file_size: Upload size ceiling in bytes
        """
        self.base_path = Path(base_path or settings.upload_dir)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.max_file_size = max_file_size or settings.jd_max_file_size

    def save_upload(
        self,
        file_data: bytes | BinaryIO,
        filename: Optional[str],
        content_type: Optional[str] = None,
    ) -> StoredFile:
        """
        Validate and save a job description upload.

        Args:
            file_data: File data (bytes or file-like object)
            filename: Original client filename
            content_type: Declared MIME type

        Returns:
            Metadata of the stored file

        Raises:
            InvalidInputError: Wrong type, empty or oversized file
        """
        data = file_data if isinstance(file_data, bytes) else file_data.read()

        is_valid, error = validate_jd_upload(
            filename, content_type, len(data), self.max_file_size
        )
        if not is_valid:
            raise InvalidInputError(error)

        original_name = sanitize_filename(filename)
        ext = Path(original_name).suffix.lower()
        stored_name = f"jd-{to_unix_millis(now())}-{secrets.randbelow(10**9)}{ext}"
        file_path = self.base_path / stored_name
        file_path.write_bytes(data)

        logger.info(f"Saved file to {file_path}")
        return StoredFile(
            original_name=original_name,
            path=str(file_path),
            size=len(data),
            content_type=content_type,
        )

    def read(self, path: str) -> bytes:
        """
        Read a stored file.

        Raises:
            FileNotFoundError: If nothing is stored at ``path``
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        return file_path.read_bytes()

    def delete(self, path: str) -> bool:
        """
        Delete a stored file.

        Args:
            path: Storage path as returned by ``save_upload``

        Returns:
            True if a file was removed
        """
        file_path = Path(path)
        if not file_path.exists():
            return False

        file_path.unlink()
        logger.info(f"Deleted file: {file_path}")
        return True

    def exists(self, path: str) -> bool:
        """Check whether a stored file exists."""
        return Path(path).exists()
