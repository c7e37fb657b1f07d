"""Pydantic schemas for comment endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from toastrank.toasters.schemas import ToasterResponse

from .models import Comment


class CommentResponse(BaseModel):
    """A single comment."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    toaster_id: int
    comment: str
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        """Create response from entity."""
        return cls(
            id=comment.id,
            toaster_id=comment.toaster_id,
            comment=comment.comment,
            created_at=comment.created_at,
        )


class CommentListResponse(BaseModel):
    """Comments page of one toaster."""

    toaster: ToasterResponse
    comments: list[CommentResponse]
