"""Uploads: admission of new toaster images.

Note: Router is not exported here to avoid circular imports.
"""

from .service import UploadResult, UploadService


__all__ = [
    "UploadResult",
    "UploadService",
]
