"""
Postboard Backend — File Service Unit Tests
=============================================

What:  Tests for FileService validation, storage and resolution.
How:   Each test gets a FileService rooted in its own tmp_path.

Test Strategy:
    ✅ Size limits (empty, reported Content-Length, actual bytes)
    ✅ Filename reduced to its base name; NUL bytes rejected
    ✅ Stored file content and returned public URL
    ✅ Same name overwrites
    ✅ Resolve: existing file, missing file, path traversal
"""

import pytest
from unittest.mock import patch

from postboard.config import Settings
from postboard.exceptions import FileStorageError, NotFoundError, ValidationError
from postboard.services.file_service import FileService


class TestFileValidation:
    """Tests for upload validation in FileService."""

    @pytest.fixture(autouse=True)
    def _service(self, tmp_path):
        self.upload_dir = tmp_path / "uploads"
        self.service = FileService(
            Settings(max_upload_size=1024),
            upload_dir=str(self.upload_dir),
        )

    def test_upload_dir_is_created(self):
        assert self.upload_dir.is_dir()

    # ── Size Validation ───────────────────────────────────────────────────

    def test_validate_size_within_limit(self):
        self.service.validate_size(None, 1000)

    def test_validate_size_at_limit(self):
        """Exactly max_upload_size bytes is allowed."""
        self.service.validate_size(1024, 1024)

    def test_validate_size_over_limit(self):
        with pytest.raises(ValidationError, match="too large"):
            self.service.validate_size(None, 1025)

    def test_validate_size_reported_length_over_limit(self):
        """A Content-Length above the limit is rejected before counting bytes."""
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(4096, 10)

    def test_validate_size_empty_file(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0, 0)

    # ── Filename Validation ───────────────────────────────────────────────

    def test_validate_filename_keeps_plain_name(self):
        assert self.service.validate_filename("cat.png") == "cat.png"

    def test_validate_filename_strips_directories(self):
        assert self.service.validate_filename("../../etc/passwd") == "passwd"
        assert self.service.validate_filename("C:\\Users\\me\\cat.png") == "cat.png"

    @pytest.mark.parametrize("filename", [None, "", ".", "..", "/"])
    def test_validate_filename_rejects_empty(self, filename):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_filename(filename)
        assert exc_info.value.field == "image"

    @pytest.mark.parametrize("filename", ["cat\x00.png", "\x00", "dir/cat.png\x00"])
    def test_validate_filename_rejects_nul_byte(self, filename):
        """A NUL byte cannot reach the filesystem call."""
        with pytest.raises(ValidationError, match="invalid characters"):
            self.service.validate_filename(filename)


class TestFileStorage:
    """Tests for writing and resolving uploads."""

    @pytest.fixture(autouse=True)
    def _service(self, tmp_path):
        self.upload_dir = tmp_path / "uploads"
        self.service = FileService(Settings(), upload_dir=str(self.upload_dir))

    @pytest.mark.asyncio
    async def test_store_upload_writes_file_and_returns_url(self, sample_image_bytes):
        url = await self.service.store_upload("cat.png", sample_image_bytes)

        assert url == "/uploads/cat.png"
        assert (self.upload_dir / "cat.png").read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_store_upload_same_name_overwrites(self):
        await self.service.store_upload("cat.png", b"first")
        await self.service.store_upload("cat.png", b"second")

        assert (self.upload_dir / "cat.png").read_bytes() == b"second"
        assert list(self.upload_dir.iterdir()) == [self.upload_dir / "cat.png"]

    @pytest.mark.asyncio
    async def test_store_upload_never_leaves_upload_dir(self):
        url = await self.service.store_upload("../escape.png", b"data")

        assert url == "/uploads/escape.png"
        assert (self.upload_dir / "escape.png").exists()
        assert not (self.upload_dir.parent / "escape.png").exists()

    @pytest.mark.asyncio
    async def test_store_upload_nul_in_name_writes_nothing(self):
        with pytest.raises(ValidationError):
            await self.service.store_upload("cat\x00.png", b"data")
        assert list(self.upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_store_upload_write_failure(self):
        with patch("aiofiles.open", side_effect=OSError("disk full")):
            with pytest.raises(FileStorageError):
                await self.service.store_upload("cat.png", b"data")

    def test_resolve_existing_file(self):
        (self.upload_dir / "cat.png").write_bytes(b"data")
        assert self.service.resolve("cat.png") == (self.upload_dir / "cat.png").resolve()

    def test_resolve_missing_file(self):
        with pytest.raises(NotFoundError):
            self.service.resolve("missing.png")

    def test_resolve_rejects_nul_byte(self):
        with pytest.raises(ValidationError):
            self.service.resolve("cat\x00.png")

    def test_resolve_rejects_traversal(self):
        (self.upload_dir.parent / "secret.txt").write_text("secret")
        with pytest.raises(ValidationError):
            self.service.resolve("../secret.txt")


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Minimal valid 1x1 PNG."""
    return bytes.fromhex(
        "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
        "1f15c4890000000d49444154789c6360000002000001e221bc330000"
        "000049454e44ae426082"
    )
