"""Local disk storage for uploaded toaster images.

Handles:
- Collision-resistant storage names (never the client filename)
- Atomic writes (temporary file + rename) so a failed upload leaves nothing
- Deletes confined to the uploads directory

Blocking filesystem calls run in a worker thread so other requests keep
flowing while a large image is written.
"""

import asyncio
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

import structlog

from toastrank.config.settings import Settings
from toastrank.core.exceptions import StorageError


logger = structlog.get_logger(__name__)


class StorageWriteError(StorageError):
    """Error while writing an image to disk."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "write_error")


class FileDeleteFailedError(StorageError):
    """Error while removing an image from disk."""

    def __init__(self, message: str = "Failed to delete file") -> None:
        super().__init__(message, "file_delete_failed")


class ImageMissingError(FileDeleteFailedError):
    """The image to delete is already gone."""

    def __init__(self, image: str) -> None:
        super().__init__()
        self.code = "image_missing"
        self.image = image


def build_storage_name(extension: str, moment: datetime | None = None) -> str:
    """Build a storage filename.

    Format: {epoch_ms}_{uuid4 hex}{ext}. Only the (already validated)
    extension of the client's filename is used.
    """
    moment = moment or datetime.now(UTC)
    millis = int(moment.timestamp() * 1000)
    return f"{millis}_{uuid4().hex}{extension.lower()}"


class LocalImageStorage:
    """Image blobs in a directory on local disk."""

    def __init__(self, settings: Settings) -> None:
        """Initialize storage.

        Args:
            settings: Application settings.
        """
        self.settings = settings
        self.root = Path(settings.upload_dir)

    def path_for(self, image: str) -> Path:
        """Resolve a stored image name to a path inside the uploads dir.

        Raises:
            StorageError: If the name would escape the uploads directory.
        """
        root = self.root.resolve()
        path = (root / image).resolve()
        if path.parent != root:
            logger.error("image_path_rejected", image=image)
            raise StorageError("Invalid image path")
        return path

    def _write(self, image: str, content: bytes) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        target = self.path_for(image)

        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".upload-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return target

    async def save(self, image: str, content: bytes) -> Path:
        """Write image bytes under ``image``.

        Raises:
            StorageWriteError: If the write fails (nothing is left behind).
        """
        try:
            path = await asyncio.to_thread(self._write, image, content)
        except OSError as e:
            logger.exception("image_write_failed", image=image, error=str(e))
            raise StorageWriteError("Failed to store image") from e

        logger.info("image_stored", image=image, file_size=len(content))
        return path

    async def delete(self, image: str) -> None:
        """Remove a stored image.

        Raises:
            ImageMissingError: If the file does not exist.
            FileDeleteFailedError: If the unlink fails for any other reason.
        """
        path = self.path_for(image)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError as e:
            raise ImageMissingError(image) from e
        except OSError as e:
            logger.exception("image_delete_failed", image=image, error=str(e))
            raise FileDeleteFailedError from e

        logger.info("image_deleted", image=image)
