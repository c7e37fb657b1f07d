"""Local disk storage for uploaded images."""

from toastrank.storage.service import (
    FileDeleteFailedError,
    ImageMissingError,
    LocalImageStorage,
    StorageWriteError,
    build_storage_name,
)


__all__ = [
    "FileDeleteFailedError",
    "ImageMissingError",
    "LocalImageStorage",
    "StorageWriteError",
    "build_storage_name",
]
