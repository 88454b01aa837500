"""
Postboard Backend — Upload Storage Service
============================================

What:  Stores uploaded images and resolves them for serving.
How:   Files are written flat into `settings.upload_dir` under their original
       filename and served back from `/uploads/<filename>`.
Who:   Called by POST /upload (store) and GET /uploads/{filename} (resolve).

Naming:
    The stored name is the base name of the client filename, so two uploads
    of "cat.png" overwrite each other. Only the base name is kept: any
    directory components a client sends ("../../etc/passwd") are dropped.

Directory Structure:
    uploads/
    ├── cat.png
    └── holiday.jpg
"""

import logging
from pathlib import Path
from typing import Optional

import aiofiles

from postboard.config import Settings
from postboard.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"


class FileService:
    """Validates, stores and resolves files in the upload directory."""

    def __init__(self, settings: Settings, upload_dir: Optional[str] = None):
        """
        Args:
            settings:   Application settings (upload_dir, max_upload_size).
            upload_dir: Override the configured directory (used in tests).
        """
        self.max_upload_size = settings.max_upload_size
        self.upload_dir = Path(upload_dir or settings.upload_dir).resolve()
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with upload_dir=%s", self.upload_dir)

    def validate_filename(self, filename: Optional[str]) -> str:
        """
        Return the base name of `filename`.

        ValidationError if nothing is left, or if the name contains a NUL
        byte (the OS cannot open such a path).
        """
        if filename and "\x00" in filename:
            raise ValidationError(
                message="Uploaded file name contains invalid characters.",
                field="image",
            )
        name = Path((filename or "").replace("\\", "/")).name
        if name in ("", ".", ".."):
            raise ValidationError(
                message="Uploaded file must have a name.",
                field="image",
            )
        return name

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Reject empty uploads and uploads above `max_upload_size`.

        Checks the Content-Length reported by the client first, then the
        actual byte count.
        """
        max_mb = self.max_upload_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty.", field="image")

        if content_length and content_length > self.max_upload_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="image",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > self.max_upload_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) is too large; maximum is {max_mb:.0f}MB.",
                field="image",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    async def store_upload(
        self,
        filename: Optional[str],
        content: bytes,
        content_length: Optional[int] = None,
    ) -> str:
        """
        Validate and write an upload; return its public URL.

        Raises:
            ValidationError:  missing name, empty or oversized content
            FileStorageError: the write failed
        """
        name = self.validate_filename(filename)
        self.validate_size(content_length, len(content))

        path = self.upload_dir / name
        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store upload at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Upload stored: %s (%d bytes)", name, len(content))
        return f"{PUBLIC_PREFIX}/{name}"

    def resolve(self, filename: str) -> Path:
        """
        Map a requested filename to a stored file.

        Raises:
            ValidationError: the path escapes the upload directory
            NotFoundError:   no such file
        """
        if "\x00" in filename:
            raise ValidationError(message="Invalid file path", field="filename")
        full_path = (self.upload_dir / filename).resolve()
        if full_path.parent != self.upload_dir:
            raise ValidationError(message="Invalid file path", field="filename")
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=filename)
        return full_path
