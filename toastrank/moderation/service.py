"""Moderation gate.

Deleting a toaster takes a secondary credential on top of the outer HTTP
Basic gate. Nothing is read or deleted until that credential matches.
The image file goes first, then the record and its comments in one batch.
"""

import secrets
from typing import TYPE_CHECKING

import structlog

from toastrank.config.settings import Settings
from toastrank.core.exceptions import (
    StorageError,
    ToasterNotFoundError,
    ToastrankError,
    ValidationError,
)
from toastrank.storage.service import ImageMissingError, LocalImageStorage
from toastrank.toasters.cache import ToasterCache
from toastrank.toasters.service import parse_toaster_id


if TYPE_CHECKING:
    from toastrank.core.database.store import ToasterStore


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class MissingFieldsError(ValidationError):
    """Id or credential not supplied."""

    def __init__(self, message: str = "Missing ID or password.") -> None:
        super().__init__(message, "missing_fields")


class InvalidCredentialError(ToastrankError):
    """Secondary credential does not match."""

    def __init__(self, message: str = "Incorrect password.") -> None:
        super().__init__(message, "invalid_credential")


def credential_matches(supplied: str, expected: str) -> bool:
    """Constant-time credential comparison."""
    return secrets.compare_digest(supplied.encode(), expected.encode())


# ==============================================================================
# Moderation Service
# ==============================================================================


class ModerationService:
    """Service deleting toasters on behalf of a moderator."""

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

    async def delete_toaster(
        self, raw_id: str | int | None, credential: str | None
    ) -> int:
        """Delete a toaster, its image and its comments.

        Args:
            raw_id: Toaster id as submitted
            credential: Secondary moderator credential

        Returns:
            Id of the deleted toaster

        Raises:
            MissingFieldsError: Id or credential missing
            InvalidCredentialError: Credential mismatch (nothing touched)
            ToasterNotFoundError: No such toaster
            FileDeleteFailedError: Image could not be removed
            StorageError: Record could not be removed
        """
        if raw_id is None or raw_id == "" or not credential:
            raise MissingFieldsError

        if not credential_matches(credential, self.settings.moderator_delete_password):
            logger.warning("moderation_credential_rejected", toaster_id=str(raw_id))
            raise InvalidCredentialError

        toaster_id = parse_toaster_id(raw_id)
        toaster = await self.store.get_toaster(toaster_id)
        if toaster is None:
            raise ToasterNotFoundError

        try:
            await self.storage.delete(toaster.image)
        except ImageMissingError:
            if not self.settings.moderation_tolerate_missing_file:
                logger.error(
                    "moderation_image_missing",
                    toaster_id=toaster_id,
                    image=toaster.image,
                )
                raise
            logger.warning(
                "moderation_image_already_gone",
                toaster_id=toaster_id,
                image=toaster.image,
            )

        try:
            await self.store.delete_toaster(toaster_id)
        except StorageError:
            raise
        except Exception as e:
            logger.exception(
                "moderation_record_delete_failed", toaster_id=toaster_id, error=str(e)
            )
            raise StorageError("Failed to delete toaster") from e

        await self.cache.invalidate()

        logger.info("toaster_deleted", toaster_id=toaster_id, image=toaster.image)
        return toaster_id
