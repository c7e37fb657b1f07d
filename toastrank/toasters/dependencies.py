"""FastAPI dependencies for toaster endpoints."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from toastrank.core.exceptions import ToastrankError

from .service import ToasterService


async def get_toaster_service(request: Request) -> ToasterService:
    """Get toaster service from app state.

    Args:
        request: FastAPI request

    Returns:
        ToasterService instance
    """
    app_state = request.app.state
    if not getattr(app_state, "toaster_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Toaster service not available",
        )
    return app_state.toaster_service


ToasterServiceDep = Annotated[ToasterService, Depends(get_toaster_service)]


def handle_toaster_error(error: ToastrankError) -> HTTPException:
    """Convert toaster errors to HTTP exceptions."""
    status_map = {
        "invalid_rating": status.HTTP_400_BAD_REQUEST,
        "toaster_not_found": status.HTTP_404_NOT_FOUND,
        "vote_conflict": status.HTTP_503_SERVICE_UNAVAILABLE,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(status_code=status_code, detail=error.message)
