"""Toaster API endpoints.

Provides routes for:
- Front page listing (newest first)
- Hall of fame (best rated)
- House rules
- Voting
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Form, Request, status
from fastapi.responses import ORJSONResponse, RedirectResponse

from toastrank.config import get_settings
from toastrank.core.exceptions import ToasterNotFoundError
from toastrank.core.markers import has_voted, set_vote_cookie, voted_toaster_ids
from toastrank.decorations.dependencies import BannerProviderDep, pick_banner

from .dependencies import ToasterServiceDep, handle_toaster_error
from .schemas import (
    HallOfFameResponse,
    MessageResponse,
    RulesResponse,
    ToasterListResponse,
    ToasterResponse,
)
from .service import (
    AlreadyVotedError,
    InvalidRatingError,
    VoteConflictError,
    parse_rating,
    parse_toaster_id,
)


logger = structlog.get_logger(__name__)


router = APIRouter(tags=["toasters"])


@router.get("/", response_model=ToasterListResponse, summary="List toasters")
async def list_toasters(
    request: Request,
    toaster_service: ToasterServiceDep,
    banner_provider: BannerProviderDep,
) -> ToasterListResponse:
    """Every toaster, newest first, plus the ids this client already voted on."""
    toasters = await toaster_service.list_toasters()
    return ToasterListResponse(
        toasters=[ToasterResponse.from_toaster(t) for t in toasters],
        banner=await pick_banner(banner_provider),
        voted=voted_toaster_ids(request.cookies),
    )


@router.get(
    "/hall-of-fame", response_model=HallOfFameResponse, summary="Best rated toasters"
)
async def hall_of_fame(
    toaster_service: ToasterServiceDep,
    banner_provider: BannerProviderDep,
) -> HallOfFameResponse:
    """Top toasters by rating."""
    toasters = await toaster_service.hall_of_fame()
    return HallOfFameResponse(
        toasters=[ToasterResponse.from_toaster(t) for t in toasters],
        banner=await pick_banner(banner_provider),
    )


@router.get("/rules", response_model=RulesResponse, summary="House rules")
async def rules() -> RulesResponse:
    """Static house rules, filled in from the configured limits."""
    settings = get_settings()
    extensions = ", ".join(
        ext.lstrip(".").upper() for ext in settings.upload_allowed_extensions
    )
    cooldown_minutes = settings.upload_cooldown_seconds // 60
    return RulesResponse(
        rules=[
            "Toasters only. Anything else gets deleted.",
            f"Accepted formats: {extensions}.",
            f"Maximum file size: {settings.upload_max_file_size_mb} MB.",
            f"One upload every {cooldown_minutes} minutes.",
            "Rate each toaster once, from 1 to 10.",
            "Be nice in the comments.",
        ]
    )


@router.post(
    "/rate/{toaster_id}",
    status_code=status.HTTP_302_FOUND,
    responses={
        200: {"model": MessageResponse, "description": "Already voted"},
        400: {"description": "Invalid rating"},
        404: {"description": "Toaster not found"},
    },
    summary="Rate a toaster",
)
async def rate_toaster(
    toaster_id: str,
    request: Request,
    toaster_service: ToasterServiceDep,
    rating: Annotated[str | None, Form()] = None,
):
    """Cast a 1..10 vote and remember it in a cookie.

    The cookie is advisory: it stops a second vote from the same browser,
    nothing more.
    """
    try:
        # The value is judged before the id, so a bad rating is always a 400
        value = parse_rating(rating)
        tid = parse_toaster_id(toaster_id)
        await toaster_service.cast_vote(
            tid,
            value,
            already_voted=has_voted(request.cookies, tid),
        )
    except AlreadyVotedError as e:
        logger.info("vote_rejected_already_voted", toaster_id=toaster_id)
        return ORJSONResponse(
            status_code=status.HTTP_200_OK,
            content=MessageResponse(message=e.message).model_dump(),
        )
    except (InvalidRatingError, ToasterNotFoundError, VoteConflictError) as e:
        raise handle_toaster_error(e) from e

    response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    set_vote_cookie(response, toaster_service.settings, tid, value)
    return response
