"""FastAPI dependencies for moderation endpoints."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from toastrank.core.exceptions import ToastrankError

from .service import ModerationService, credential_matches


security = HTTPBasic(realm="Admin Area", auto_error=False)

BASIC_CHALLENGE = {"WWW-Authenticate": 'Basic realm="Admin Area"'}


async def get_moderation_service(request: Request) -> ModerationService:
    """Get moderation service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "moderation_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Moderation service not available",
        )
    return app_state.moderation_service


ModerationServiceDep = Annotated[ModerationService, Depends(get_moderation_service)]


async def require_moderator(
    moderation_service: ModerationServiceDep,
    credentials: Annotated[HTTPBasicCredentials | None, Depends(security)],
) -> str:
    """Outer HTTP Basic gate for every moderation route.

    Raises:
        HTTPException(401): Missing or wrong credentials
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers=BASIC_CHALLENGE,
        )

    settings = moderation_service.settings
    # Evaluate both so timing does not reveal which one failed
    username_ok = credential_matches(credentials.username, settings.moderator_username)
    password_ok = credential_matches(credentials.password, settings.moderator_password)
    if not (username_ok and password_ok):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers=BASIC_CHALLENGE,
        )
    return credentials.username


Moderator = Annotated[str, Depends(require_moderator)]


def handle_moderation_error(error: ToastrankError) -> HTTPException:
    """Convert moderation errors to HTTP exceptions."""
    status_map = {
        "missing_fields": status.HTTP_400_BAD_REQUEST,
        "invalid_credential": status.HTTP_401_UNAUTHORIZED,
        "toaster_not_found": status.HTTP_404_NOT_FOUND,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(status_code=status_code, detail=error.message)
