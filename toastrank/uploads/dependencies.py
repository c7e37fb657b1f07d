"""FastAPI dependencies for upload endpoints."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from toastrank.core.exceptions import ToastrankError

from .service import UploadService


async def get_upload_service(request: Request) -> UploadService:
    """Get upload service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "upload_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Upload service not available",
        )
    return app_state.upload_service


UploadServiceDep = Annotated[UploadService, Depends(get_upload_service)]


def handle_upload_error(error: ToastrankError) -> HTTPException:
    """Convert upload errors to HTTP exceptions."""
    status_map = {
        "missing_file": status.HTTP_400_BAD_REQUEST,
        "invalid_file_type": status.HTTP_400_BAD_REQUEST,
        "file_too_large": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        "cooldown_active": status.HTTP_429_TOO_MANY_REQUESTS,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(status_code=status_code, detail=error.message)
