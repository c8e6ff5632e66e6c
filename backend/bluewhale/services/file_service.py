"""
Blue Whale Backend: Upload Storage Service
============================================

What:  Validates, stores and cleans up PDF documents attached to content.
How:   Checks extension, size and content signature, then writes the bytes to
       a date-organized directory under a UUID filename.
Who:   Called by ContentService when a 'pdf' post is created; the stored
       files are served back by GET /uploads/{path}.
When:  During POST /content with a multipart `file` field.

Security Model:
    1. Extension check:   only .pdf
    2. Size check:        settings.max_file_size (10MB by default), empty files rejected
    3. MIME type check:   libmagic inspects the leading bytes (python-magic)
    4. UUID filename:     no user input reaches the file system path
    5. Serving:           resolve_stored_path() refuses paths outside the upload root

Directory Structure:
    uploads/
    └── 2024/
        └── 05/
            └── 17/
                └── 3b0d7c1e-....pdf
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from bluewhale.config import settings
from bluewhale.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "application/pdf": ".pdf",
}

ALLOWED_EXTENSIONS = {".pdf"}


class FileService:
    """
    Manages upload validation and the storage lifecycle of attached files.

    Lifecycle of an uploaded file:
        1. ContentService hands over filename + bytes → validate_and_store()
        2. Extension, size and MIME checks (cheapest first)
        3. File is written to YYYY/MM/DD/<uuid>.pdf
        4. Relative path is stored on the Content row (file_url)
        5. If the database insert fails afterwards: cleanup_file() removes it
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """Returns the normalized extension; raises ValidationError for anything but .pdf."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message="Unsupported file type. Only PDF files can be uploaded.",
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks Content-Length (if the client sent one) and the actual byte count.

        Raises:
            ValidationError for empty files and files over settings.max_file_size
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(
                message="The uploaded file is empty.",
                field="file",
            )

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, file_content: bytes) -> str:
        """
        Detects the real type from the file's leading bytes with libmagic.

        Returns:
            Detected MIME type string ("application/pdf")

        Raises:
            ValidationError if the bytes are not a PDF
            FileStorageError if libmagic itself fails
        """
        import magic

        try:
            mime_type = magic.from_buffer(file_content[:2048], mime=True)
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a valid PDF document."
                ),
                field="file",
                context={"detected_mime": mime_type, "allowed": list(ALLOWED_MIME_TYPES)},
            )

        return mime_type

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """YYYY/MM/DD/<uuid><ext>; returns (absolute_path, relative_path)."""
        now = datetime.now(timezone.utc)
        date_dir = now.strftime("%Y/%m/%d")
        unique_name = f"{uuid.uuid4()}{extension}"

        relative_path = f"{date_dir}/{unique_name}"
        absolute_path = self.storage_root / relative_path

        return absolute_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """
        Write validated file content to disk.

        Returns: Tuple of (absolute_path, relative_path).
        Raises:  FileStorageError if directory creation or file write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)

            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("File stored: %s (%d bytes)", relative_path, len(content))
            return str(absolute_path), relative_path

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded file. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def cleanup_file(self, file_path: str) -> None:
        """
        Best-effort removal of a stored file.

        Missing files are ignored; other failures are logged, never raised,
        so cleanup can't mask the error that triggered it.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """
        Complete validation and storage pipeline.

        Validation order (cheapest first):
            1. Extension
            2. Size
            3. MIME type via magic bytes
            4. Write to disk

        Returns: Tuple of (absolute_path, relative_path_for_db).
        """
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        self.validate_mime_type(content)
        return await self.store_file(content, ext)

    def resolve_stored_path(self, relative_path: str) -> Path:
        """
        Map a /uploads/{path} request to a file inside the storage root.

        Raises:
            ValidationError: the path escapes the storage root (../ tricks)
            NotFoundError:   nothing stored at that path
        """
        full_path = (self.storage_root / relative_path).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path", field="path")
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=relative_path)
        return full_path


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
