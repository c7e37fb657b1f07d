"""Upload admission pipeline.

A submission goes through, in order:
1. presence of a file
2. extension allow-list (case-insensitive)
3. size ceiling
4. optional magic bytes check
5. cooldown marker (advisory, client-held)
6. storage under a generated name
7. toaster record creation (the stored file is removed if this fails)

Every rejection happens before anything touches the disk or the store.
"""

import posixpath
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from toastrank.config.settings import Settings
from toastrank.core.exceptions import SoftRejectionError, StorageError, ValidationError
from toastrank.core.markers import parse_upload_marker
from toastrank.storage.service import LocalImageStorage, build_storage_name
from toastrank.toasters.cache import ToasterCache
from toastrank.toasters.models import Toaster
from toastrank.utils.magic_bytes import matches_extension


if TYPE_CHECKING:
    from toastrank.core.database.store import ToasterStore


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class MissingFileError(ValidationError):
    """No file in the submission."""

    def __init__(self, message: str = "No image was uploaded.") -> None:
        super().__init__(message, "missing_file")


class InvalidFileTypeError(ValidationError):
    """Extension (or content) is not an accepted image format."""

    def __init__(
        self,
        message: str = "Invalid file type. Only PNG, WebP, and JPG are allowed.",
    ) -> None:
        super().__init__(message, "invalid_file_type")


class FileTooLargeError(ValidationError):
    """Payload exceeds the size ceiling."""

    def __init__(self, max_size: int) -> None:
        message = (
            "File size is too large. "
            f"Maximum size is {max_size // (1024 * 1024)} MB."
        )
        super().__init__(message, "file_too_large")
        self.max_size = max_size


class CooldownActiveError(SoftRejectionError):
    """Client uploaded less than one cooldown period ago."""

    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__(
            "You can only upload one image per hour.", "cooldown_active"
        )
        self.retry_after_seconds = retry_after_seconds


@dataclass
class UploadResult:
    """Outcome of an accepted upload."""

    toaster: Toaster
    uploaded_at: datetime


def extract_extension(filename: str) -> str:
    """Lower-cased extension of the last path component ('' if none)."""
    basename = posixpath.basename(filename.replace("\\", "/"))
    return posixpath.splitext(basename)[1].lower()


# ==============================================================================
# Upload Service
# ==============================================================================


class UploadService:
    """Service admitting toaster uploads."""

    def __init__(
        self,
        store: "ToasterStore",
        storage: LocalImageStorage,
        settings: Settings,
        cache: ToasterCache | None = None,
    ) -> None:
        self.store = store
        self.storage = storage
        self.settings = settings
        self.cache = cache or ToasterCache(None, settings.ranking_cache_ttl_seconds)

    @property
    def max_file_size(self) -> int:
        """Maximum upload size in bytes."""
        return self.settings.upload_max_file_size

    @property
    def cooldown(self) -> timedelta:
        """Minimum time between two uploads from one client."""
        return timedelta(seconds=self.settings.upload_cooldown_seconds)

    def validate_file(self, filename: str | None, content: bytes) -> str:
        """Check presence, extension and size.

        Returns:
            The validated, lower-cased extension.
        """
        if not filename:
            raise MissingFileError

        extension = extract_extension(filename)
        if extension not in self.settings.upload_allowed_extensions:
            raise InvalidFileTypeError

        if len(content) > self.max_file_size:
            raise FileTooLargeError(self.max_file_size)

        if self.settings.upload_verify_content and not matches_extension(
            content[:64], extension
        ):
            logger.warning(
                "magic_bytes_validation_failed",
                extension=extension,
                file_size=len(content),
            )
            raise InvalidFileTypeError

        return extension

    def check_cooldown(self, marker: str | None, now: datetime) -> None:
        """Reject if the client's last upload is younger than the cooldown.

        The marker is client-held and advisory; a missing or garbled marker
        means "no previous upload".
        """
        last_upload = parse_upload_marker(marker)
        if last_upload is None:
            return

        elapsed = now - last_upload
        if elapsed < self.cooldown:
            remaining = self.cooldown - elapsed
            raise CooldownActiveError(
                retry_after_seconds=max(1, int(remaining.total_seconds()))
            )

    async def submit(
        self,
        filename: str | None,
        content: bytes,
        cooldown_marker: str | None = None,
        now: datetime | None = None,
    ) -> UploadResult:
        """Run the whole admission pipeline.

        Args:
            filename: Client supplied filename (only its extension is used).
            content: File bytes; callers read at most ``max_file_size + 1``.
            cooldown_marker: Raw ``lastUploadTime`` cookie value.
            now: Clock override.

        Raises:
            MissingFileError, InvalidFileTypeError, FileTooLargeError,
            CooldownActiveError: Rejected, nothing stored.
            StorageError: Disk or database failure (no file left behind).
        """
        now = now or datetime.now(UTC)

        extension = self.validate_file(filename, content)
        self.check_cooldown(cooldown_marker, now)

        image = build_storage_name(extension, now)
        await self.storage.save(image, content)

        try:
            toaster = await self.store.create_toaster(image)
        except Exception as e:
            logger.exception("toaster_record_failed", image=image, error=str(e))
            await self._discard(image)
            raise StorageError("Failed to record upload") from e

        await self.cache.invalidate()

        logger.info(
            "toaster_uploaded",
            toaster_id=toaster.id,
            image=image,
            file_size=len(content),
        )
        return UploadResult(toaster=toaster, uploaded_at=now)

    async def _discard(self, image: str) -> None:
        """Remove a stored file whose record could not be created."""
        try:
            await self.storage.delete(image)
            logger.info("orphan_image_removed", image=image)
        except StorageError as e:
            logger.error("orphan_image_left", image=image, error=e.message)
