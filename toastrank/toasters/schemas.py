"""Pydantic schemas for toaster endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .models import Toaster


class ToasterResponse(BaseModel):
    """A toaster with its aggregate rating."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    image: str = Field(..., description="Stored image filename")
    image_url: str = Field(..., description="Public path of the image")
    rating: float = Field(..., description="Mean rating, 0 until the first vote")
    votes: int = Field(..., ge=0)
    created_at: datetime

    @classmethod
    def from_toaster(cls, toaster: Toaster) -> "ToasterResponse":
        """Create response from entity."""
        return cls(
            id=toaster.id,
            image=toaster.image,
            image_url=f"/uploads/{toaster.image}",
            rating=toaster.rating,
            votes=toaster.votes,
            created_at=toaster.created_at,
        )


class ToasterListResponse(BaseModel):
    """Front page: every toaster, newest first."""

    toasters: list[ToasterResponse]
    banner: str | None = Field(default=None, description="Decorative banner path")
    voted: list[int] = Field(
        default_factory=list,
        description="Toaster ids this client holds a vote marker for",
    )


class HallOfFameResponse(BaseModel):
    """Best rated toasters."""

    toasters: list[ToasterResponse]
    banner: str | None = None


class RulesResponse(BaseModel):
    """House rules."""

    rules: list[str]


class MessageResponse(BaseModel):
    """Plain message."""

    message: str
