"""Upload API endpoint."""

from typing import Annotated

import structlog
from fastapi import APIRouter, File, Request, UploadFile, status
from fastapi.responses import ORJSONResponse, RedirectResponse

from toastrank.core.context import get_request_id
from toastrank.core.exceptions import StorageError, ValidationError
from toastrank.core.markers import COOLDOWN_COOKIE, set_upload_cookie

from .dependencies import UploadServiceDep, handle_upload_error
from .service import CooldownActiveError


logger = structlog.get_logger(__name__)


router = APIRouter(tags=["uploads"])


@router.post(
    "/submit",
    status_code=status.HTTP_302_FOUND,
    responses={
        400: {"description": "Missing file or invalid type"},
        413: {"description": "File too large"},
        429: {"description": "Upload cooldown active"},
    },
    summary="Upload a toaster",
)
async def submit_toaster(
    request: Request,
    upload_service: UploadServiceDep,
    image: Annotated[UploadFile | None, File()] = None,
):
    """Store a toaster image and start the client's upload cooldown."""
    filename = image.filename if image is not None else None
    content = b""
    if image is not None:
        # One byte past the ceiling is enough to detect an oversized file.
        content = await image.read(upload_service.max_file_size + 1)
        await image.close()

    try:
        result = await upload_service.submit(
            filename,
            content,
            cooldown_marker=request.cookies.get(COOLDOWN_COOKIE),
        )
    except CooldownActiveError as e:
        logger.info("upload_rejected_cooldown", retry_after=e.retry_after_seconds)
        return ORJSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "error": True,
                "message": e.message,
                "status_code": status.HTTP_429_TOO_MANY_REQUESTS,
                "request_id": get_request_id(),
            },
            headers={"Retry-After": str(e.retry_after_seconds)},
        )
    except (ValidationError, StorageError) as e:
        raise handle_upload_error(e) from e

    response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    set_upload_cookie(response, upload_service.settings, result.uploaded_at)
    return response
