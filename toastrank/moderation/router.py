"""Moderation API endpoints, behind HTTP Basic."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Form

from toastrank.core.exceptions import ToastrankError

from .dependencies import Moderator, ModerationServiceDep, handle_moderation_error
from .schemas import DeleteToasterResponse, ModerationConsoleResponse


logger = structlog.get_logger(__name__)


router = APIRouter(prefix="/mod", tags=["moderation"])


@router.get("", response_model=ModerationConsoleResponse, summary="Moderation console")
async def console(moderator: Moderator) -> ModerationConsoleResponse:
    """Entry point of the moderation console."""
    return ModerationConsoleResponse(
        moderator=moderator,
        actions=["POST /mod/delete (form fields: id, password)"],
    )


@router.post(
    "/delete",
    response_model=DeleteToasterResponse,
    responses={
        400: {"description": "Missing ID or password"},
        401: {"description": "Incorrect password"},
        404: {"description": "Toaster not found"},
        500: {"description": "Failed to delete file"},
    },
    summary="Delete a toaster",
)
async def delete_toaster(
    moderator: Moderator,
    moderation_service: ModerationServiceDep,
    toaster_id: Annotated[str | None, Form(alias="id")] = None,
    password: Annotated[str | None, Form()] = None,
) -> DeleteToasterResponse:
    """Delete a toaster, its image and its comments."""
    try:
        deleted_id = await moderation_service.delete_toaster(toaster_id, password)
    except ToastrankError as e:
        raise handle_moderation_error(e) from e

    logger.info("moderation_delete_completed", moderator=moderator, toaster_id=deleted_id)
    return DeleteToasterResponse(
        message="Toaster deleted successfully", toaster_id=deleted_id
    )
