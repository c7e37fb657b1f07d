"""Pydantic schemas for moderation endpoints."""

from pydantic import BaseModel, Field


class ModerationConsoleResponse(BaseModel):
    """What the moderation console offers."""

    moderator: str
    actions: list[str] = Field(default_factory=list)


class DeleteToasterResponse(BaseModel):
    """Result of a delete."""

    message: str
    toaster_id: int
