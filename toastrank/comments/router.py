"""Comment API endpoints."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Form, status
from fastapi.responses import RedirectResponse

from toastrank.core.exceptions import ToastrankError
from toastrank.toasters.schemas import ToasterResponse
from toastrank.toasters.service import parse_toaster_id

from .dependencies import CommentServiceDep, handle_comment_error
from .schemas import CommentListResponse, CommentResponse


logger = structlog.get_logger(__name__)


router = APIRouter(prefix="/toasters", tags=["comments"])


@router.get(
    "/{toaster_id}/comments",
    response_model=CommentListResponse,
    responses={404: {"description": "Toaster not found"}},
    summary="List comments",
)
async def list_comments(
    toaster_id: str,
    comment_service: CommentServiceDep,
) -> CommentListResponse:
    """A toaster and its comments, newest first."""
    try:
        toaster, comments = await comment_service.list_comments(
            parse_toaster_id(toaster_id)
        )
    except ToastrankError as e:
        raise handle_comment_error(e) from e

    return CommentListResponse(
        toaster=ToasterResponse.from_toaster(toaster),
        comments=[CommentResponse.from_comment(c) for c in comments],
    )


@router.post(
    "/{toaster_id}/comment",
    status_code=status.HTTP_302_FOUND,
    responses={
        400: {"description": "Empty comment"},
        404: {"description": "Toaster not found"},
    },
    summary="Add a comment",
)
async def add_comment(
    toaster_id: str,
    comment_service: CommentServiceDep,
    comment: Annotated[str | None, Form()] = None,
) -> RedirectResponse:
    """Append a comment and go back to the comments page."""
    try:
        tid = parse_toaster_id(toaster_id)
        await comment_service.add_comment(tid, comment)
    except ToastrankError as e:
        raise handle_comment_error(e) from e

    return RedirectResponse(
        url=f"/toasters/{tid}/comments", status_code=status.HTTP_302_FOUND
    )
