"""Tests for the upload admission pipeline."""

import re
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from toastrank.core.exceptions import StorageError
from toastrank.core.markers import encode_upload_marker
from toastrank.storage.service import LocalImageStorage, build_storage_name
from toastrank.uploads.service import (
    CooldownActiveError,
    FileTooLargeError,
    InvalidFileTypeError,
    MissingFileError,
    UploadService,
    extract_extension,
)


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

STORAGE_NAME = re.compile(r"^\d+_[0-9a-f]{32}\.(png|webp|jpg|jpeg)$")

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def stored_files(upload_dir: Path) -> list[str]:
    return sorted(p.name for p in upload_dir.iterdir())


class TestExtension:
    """Tests for extract_extension."""

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("toaster.PNG", ".png"),
            ("a.b.JpEg", ".jpeg"),
            ("no_extension", ""),
            (".png", ""),
            ("dir/sub/x.webp", ".webp"),
            ("C:\\temp\\x.jpg", ".jpg"),
        ],
    )
    def test_extract(self, filename: str, expected: str) -> None:
        assert extract_extension(filename) == expected


class TestStorageName:
    """Tests for build_storage_name."""

    def test_format(self) -> None:
        name = build_storage_name(".PNG", NOW)
        assert STORAGE_NAME.match(name)
        assert name.startswith(str(int(NOW.timestamp() * 1000)))

    def test_unique_within_same_millisecond(self) -> None:
        assert build_storage_name(".png", NOW) != build_storage_name(".png", NOW)


class TestSubmit:
    """Tests for UploadService.submit."""

    @pytest.mark.asyncio
    async def test_accepts_png(
        self, upload_service: UploadService, store, upload_dir: Path
    ) -> None:
        result = await upload_service.submit("toaster.png", PNG_BYTES, now=NOW)

        assert result.toaster.id == 1
        assert result.toaster.votes == 0
        assert result.toaster.rating == 0.0
        assert result.uploaded_at == NOW
        assert stored_files(upload_dir) == [result.toaster.image]
        assert (upload_dir / result.toaster.image).read_bytes() == PNG_BYTES

    @pytest.mark.asyncio
    async def test_extension_case_insensitive(
        self, upload_service: UploadService
    ) -> None:
        result = await upload_service.submit("x.PNG", PNG_BYTES, now=NOW)
        assert result.toaster.image.endswith(".png")

    @pytest.mark.asyncio
    async def test_missing_file(self, upload_service: UploadService, store) -> None:
        with pytest.raises(MissingFileError):
            await upload_service.submit(None, b"", now=NOW)
        assert store.toasters == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filename", ["x.gif", "x.txt", "x", "x.png.exe"])
    async def test_rejects_other_types(
        self, upload_service: UploadService, store, upload_dir: Path, filename: str
    ) -> None:
        with pytest.raises(InvalidFileTypeError):
            await upload_service.submit(filename, PNG_BYTES, now=NOW)
        assert store.toasters == {}
        assert stored_files(upload_dir) == []

    @pytest.mark.asyncio
    async def test_exact_size_limit_accepted(
        self, upload_service: UploadService
    ) -> None:
        content = b"\x00" * (10 * 1024 * 1024)
        result = await upload_service.submit("big.jpg", content, now=NOW)
        assert result.toaster.id == 1

    @pytest.mark.asyncio
    async def test_one_byte_over_limit_rejected(
        self, upload_service: UploadService, store, upload_dir: Path
    ) -> None:
        content = b"\x00" * (10 * 1024 * 1024 + 1)
        with pytest.raises(FileTooLargeError):
            await upload_service.submit("big.jpg", content, now=NOW)
        assert store.toasters == {}
        assert stored_files(upload_dir) == []

    @pytest.mark.asyncio
    async def test_cooldown_active(
        self, upload_service: UploadService, store
    ) -> None:
        marker = encode_upload_marker(NOW - timedelta(minutes=10))

        with pytest.raises(CooldownActiveError) as exc_info:
            await upload_service.submit("x.png", PNG_BYTES, marker, now=NOW)

        assert exc_info.value.retry_after_seconds == 50 * 60
        assert store.toasters == {}

    @pytest.mark.asyncio
    async def test_cooldown_expired(self, upload_service: UploadService) -> None:
        marker = encode_upload_marker(NOW - timedelta(hours=1, seconds=1))
        result = await upload_service.submit("x.png", PNG_BYTES, marker, now=NOW)
        assert result.toaster.id == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("marker", ["garbage", "", "99999999999999999999999"])
    async def test_unreadable_marker_ignored(
        self, upload_service: UploadService, marker: str
    ) -> None:
        result = await upload_service.submit("x.png", PNG_BYTES, marker, now=NOW)
        assert result.toaster.id == 1

    @pytest.mark.asyncio
    async def test_type_checked_before_cooldown(
        self, upload_service: UploadService
    ) -> None:
        marker = encode_upload_marker(NOW)
        with pytest.raises(InvalidFileTypeError):
            await upload_service.submit("x.gif", PNG_BYTES, marker, now=NOW)

    @pytest.mark.asyncio
    async def test_client_path_never_reaches_storage(
        self, upload_service: UploadService, upload_dir: Path
    ) -> None:
        result = await upload_service.submit(
            "../../etc/evil.png", PNG_BYTES, now=NOW
        )

        assert STORAGE_NAME.match(result.toaster.image)
        assert stored_files(upload_dir) == [result.toaster.image]
        assert not (upload_dir.parent.parent / "etc").exists()

    @pytest.mark.asyncio
    async def test_record_failure_leaves_no_file(
        self, upload_service: UploadService, store, upload_dir: Path
    ) -> None:
        store.fail_create = True

        with pytest.raises(StorageError):
            await upload_service.submit("x.png", PNG_BYTES, now=NOW)

        assert stored_files(upload_dir) == []

    @pytest.mark.asyncio
    async def test_content_check_when_enabled(
        self, store, settings, upload_dir: Path
    ) -> None:
        strict = settings.model_copy(update={"upload_verify_content": True})
        service = UploadService(store, LocalImageStorage(strict), strict)

        with pytest.raises(InvalidFileTypeError):
            await service.submit("x.png", b"not an image at all", now=NOW)

        result = await service.submit("x.png", PNG_BYTES, now=NOW)
        assert stored_files(upload_dir) == [result.toaster.image]
