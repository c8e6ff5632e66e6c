"""
Blue Whale Backend: File Service Unit Tests
=============================================

What:  Tests for PDF upload validation, storage and path resolution.
How:   Real temporary directories; libmagic is replaced with a stub module
       in sys.modules so the tests don't depend on the system library.

Test Strategy:
    ✅ Extension: .pdf only, case-insensitive
    ✅ Size: empty, oversized Content-Length, oversized body
    ✅ MIME: PDF accepted, anything else rejected, libmagic failure → 500
    ✅ Storage: YYYY/MM/DD/<uuid>.pdf on disk, cleanup never raises
    ✅ Serving: ../ traversal refused, missing file → NotFoundError
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from bluewhale.config import settings
from bluewhale.exceptions import FileStorageError, NotFoundError, ValidationError
from bluewhale.services.file_service import FileService


def fake_magic(mime_type=None, error=None):
    module = MagicMock()
    if error is not None:
        module.from_buffer.side_effect = error
    else:
        module.from_buffer.return_value = mime_type
    return patch.dict(sys.modules, {"magic": module})


class TestFileValidation:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage)

    # ── Extension Validation ──────────────────────────────────────────────

    def test_validate_extension_pdf(self):
        assert self.service.validate_extension("report.pdf") == ".pdf"

    def test_validate_extension_uppercase(self):
        assert self.service.validate_extension("REPORT.PDF") == ".pdf"

    @pytest.mark.parametrize("filename", ["photo.jpg", "notes.txt", "noextension", "malware.exe"])
    def test_validate_extension_rejected(self, filename):
        with pytest.raises(ValidationError, match="Only PDF files"):
            self.service.validate_extension(filename)

    # ── Size Validation ───────────────────────────────────────────────────

    def test_validate_size_within_limit(self):
        self.service.validate_size(1000, 1000)

    def test_validate_size_empty_file(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0, 0)

    def test_validate_size_reported_length_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(settings.max_file_size + 1, 10)

    def test_validate_size_actual_body_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(None, settings.max_file_size + 1)

    # ── MIME Validation ───────────────────────────────────────────────────

    def test_validate_mime_type_pdf(self, sample_pdf_bytes):
        with fake_magic("application/pdf"):
            assert self.service.validate_mime_type(sample_pdf_bytes) == "application/pdf"

    def test_validate_mime_type_renamed_image_rejected(self):
        with fake_magic("image/png"):
            with pytest.raises(ValidationError, match="is not supported"):
                self.service.validate_mime_type(b"\x89PNG\r\n\x1a\n")

    def test_validate_mime_type_libmagic_failure(self, sample_pdf_bytes):
        with fake_magic(error=RuntimeError("magic database missing")):
            with pytest.raises(FileStorageError):
                self.service.validate_mime_type(sample_pdf_bytes)


class TestFileStorage:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.storage_root = Path(temp_storage).resolve()
        self.service = FileService(storage_root=temp_storage)

    @pytest.mark.asyncio
    async def test_validate_and_store_writes_date_directory(self, sample_pdf_bytes):
        with fake_magic("application/pdf"):
            abs_path, rel_path = await self.service.validate_and_store(
                filename="whales.pdf",
                content=sample_pdf_bytes,
                content_length=len(sample_pdf_bytes),
            )

        assert rel_path.endswith(".pdf")
        assert len(rel_path.split("/")) == 4
        assert Path(abs_path).read_bytes() == sample_pdf_bytes
        assert Path(abs_path).is_relative_to(self.storage_root)

    @pytest.mark.asyncio
    async def test_validate_and_store_rejects_before_writing(self, sample_pdf_bytes):
        with pytest.raises(ValidationError):
            await self.service.validate_and_store("whales.docx", sample_pdf_bytes)
        assert list(self.storage_root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_store_file_os_error(self, sample_pdf_bytes):
        with patch("aiofiles.open", side_effect=OSError("disk full")):
            with pytest.raises(FileStorageError, match="Failed to save"):
                await self.service.store_file(sample_pdf_bytes, ".pdf")

    # ── Cleanup ───────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_cleanup_file_removes_file(self, tmp_path):
        stored = tmp_path / "stored.pdf"
        stored.write_bytes(b"%PDF-1.4")

        await self.service.cleanup_file(str(stored))
        assert not stored.exists()

    @pytest.mark.asyncio
    async def test_cleanup_file_nonexistent(self, tmp_path):
        await self.service.cleanup_file(str(tmp_path / "missing.pdf"))

    # ── Serving ───────────────────────────────────────────────────────────

    def test_resolve_stored_path(self):
        target = self.storage_root / "2024" / "05" / "17" / "doc.pdf"
        target.parent.mkdir(parents=True)
        target.write_bytes(b"%PDF-1.4")

        assert self.service.resolve_stored_path("2024/05/17/doc.pdf") == target

    def test_resolve_stored_path_traversal(self):
        with pytest.raises(ValidationError, match="Invalid file path"):
            self.service.resolve_stored_path("../../etc/passwd")

    def test_resolve_stored_path_missing(self):
        with pytest.raises(NotFoundError):
            self.service.resolve_stored_path("2024/01/01/nothing.pdf")
