"""Advisory client markers carried in cookies.

Two markers exist:

- ``lastUploadTime``: epoch milliseconds of the client's last successful
  upload, used for the upload cooldown.
- ``voted_on_{id}``: set once a client has voted on a toaster.

Both live on the client, so they only stop honest clients. They are a
usability gate, not a security control: a client that drops its cookies
can upload again or vote again. Nothing here should be read as a trusted
ledger.
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from starlette.responses import Response


if TYPE_CHECKING:
    from toastrank.config.settings import Settings


COOLDOWN_COOKIE = "lastUploadTime"
VOTE_COOKIE_PREFIX = "voted_on_"


def vote_cookie_name(toaster_id: int) -> str:
    """Cookie name recording a vote on one toaster."""
    return f"{VOTE_COOKIE_PREFIX}{toaster_id}"


def has_voted(cookies: Mapping[str, str], toaster_id: int) -> bool:
    """Whether the client claims to have voted on this toaster."""
    return bool(cookies.get(vote_cookie_name(toaster_id)))


def voted_toaster_ids(cookies: Mapping[str, str]) -> list[int]:
    """All toaster ids the client has a vote marker for."""
    ids = []
    for name, value in cookies.items():
        if not name.startswith(VOTE_COOKIE_PREFIX) or not value:
            continue
        suffix = name.removeprefix(VOTE_COOKIE_PREFIX)
        if suffix.isdigit():
            ids.append(int(suffix))
    return sorted(ids)


def encode_upload_marker(moment: datetime) -> str:
    """Encode an upload moment as epoch milliseconds."""
    return str(int(moment.timestamp() * 1000))


def parse_upload_marker(value: str | None) -> datetime | None:
    """Decode the cooldown marker.

    Returns None for a missing or unparseable marker, which the pipeline
    treats as "no previous upload".
    """
    if not value:
        return None
    try:
        millis = int(value)
    except ValueError:
        return None
    try:
        return datetime.fromtimestamp(millis / 1000, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def set_vote_cookie(
    response: Response, settings: "Settings", toaster_id: int, value: int
) -> None:
    """Record a vote on the client (no practical expiry)."""
    response.set_cookie(
        vote_cookie_name(toaster_id),
        str(value),
        max_age=settings.vote_marker_max_age_seconds,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


def set_upload_cookie(
    response: Response, settings: "Settings", moment: datetime
) -> None:
    """Start the upload cooldown on the client."""
    response.set_cookie(
        COOLDOWN_COOKIE,
        encode_upload_marker(moment),
        max_age=settings.upload_cooldown_seconds,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
