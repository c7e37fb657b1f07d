"""Comment register: append-only comments per toaster."""

from typing import TYPE_CHECKING

import structlog

from toastrank.core.exceptions import ToasterNotFoundError, ValidationError

from .models import Comment


if TYPE_CHECKING:
    from toastrank.core.database.store import ToasterStore
    from toastrank.toasters.models import Toaster


logger = structlog.get_logger(__name__)


class EmptyCommentError(ValidationError):
    """Comment is empty after trimming."""

    def __init__(self, message: str = "Comment cannot be empty.") -> None:
        super().__init__(message, "empty_comment")


class CommentService:
    """Service for adding and listing toaster comments."""

    def __init__(self, store: "ToasterStore") -> None:
        self.store = store

    async def add_comment(self, toaster_id: int, text: str | None) -> int:
        """Append a comment to a toaster.

        Args:
            toaster_id: Target toaster
            text: Raw comment text, stored trimmed

        Returns:
            Id of the new comment

        Raises:
            EmptyCommentError: Nothing left after trimming
            ToasterNotFoundError: Toaster does not exist
        """
        content = (text or "").strip()
        if not content:
            raise EmptyCommentError

        comment = await self.store.add_comment(toaster_id, content)
        logger.info(
            "comment_added",
            toaster_id=toaster_id,
            comment_id=comment.id,
            length=len(content),
        )
        return comment.id

    async def list_comments(
        self, toaster_id: int
    ) -> tuple["Toaster", list[Comment]]:
        """Toaster and its comments, newest first."""
        toaster = await self.store.get_toaster(toaster_id)
        if toaster is None:
            raise ToasterNotFoundError
        comments = await self.store.list_comments(toaster_id)
        return toaster, comments
