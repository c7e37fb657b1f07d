"""Toaster service layer.

Business logic for:
- Listing toasters (newest first) and the hall of fame
- Rating aggregation: one running mean per toaster, updated with a
  compare-and-set retry loop so concurrent votes never lose an update
"""

from typing import TYPE_CHECKING

import structlog

from toastrank.config.settings import Settings
from toastrank.core.exceptions import (
    SoftRejectionError,
    ToasterNotFoundError,
    ToastrankError,
    ValidationError,
)

from .cache import ToasterCache
from .models import MAX_RATING, MIN_RATING, Toaster, apply_vote, best_rated, newest_first


if TYPE_CHECKING:
    from toastrank.core.database.store import ToasterStore


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class InvalidRatingError(ValidationError):
    """Rating outside 1..10 or not an integer."""

    def __init__(
        self, message: str = f"Rating must be between {MIN_RATING} and {MAX_RATING}."
    ) -> None:
        super().__init__(message, "invalid_rating")


class AlreadyVotedError(SoftRejectionError):
    """Client already holds a vote marker for this toaster."""

    def __init__(self, message: str = "You have already voted on this toaster!") -> None:
        super().__init__(message, "already_voted")


class VoteConflictError(ToastrankError):
    """Too many concurrent votes; the compare-and-set never won."""

    def __init__(self, message: str = "Too many votes at once, try again.") -> None:
        super().__init__(message, "vote_conflict")


# ==============================================================================
# Parsing
# ==============================================================================


def parse_rating(raw: str | int | None) -> int:
    """Parse a submitted rating.

    Only whole numbers in [1, 10] are accepted.

    Raises:
        InvalidRatingError: For anything else.
    """
    if isinstance(raw, bool) or raw is None:
        raise InvalidRatingError
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw.lstrip("+-").isdigit():
            raise InvalidRatingError
    try:
        value = int(raw)
    except (TypeError, ValueError) as e:
        raise InvalidRatingError from e
    if not MIN_RATING <= value <= MAX_RATING:
        raise InvalidRatingError
    return value


def parse_toaster_id(raw: str | int | None) -> int:
    """Parse a toaster id from a path or form field.

    Anything that is not a positive integer written in ASCII digits cannot
    name a toaster.

    Raises:
        ToasterNotFoundError: If the id is malformed.
    """
    if isinstance(raw, str):
        text = raw.strip()
        if not (text.isascii() and text.isdigit()):
            raise ToasterNotFoundError
        raw = int(text)
    if not isinstance(raw, int) or isinstance(raw, bool) or raw < 1:
        raise ToasterNotFoundError
    return raw


# ==============================================================================
# Toaster Service
# ==============================================================================


class ToasterService:
    """Service for toaster listings and rating aggregation."""

    def __init__(
        self,
        store: "ToasterStore",
        settings: Settings,
        cache: ToasterCache | None = None,
    ) -> None:
        """Initialize with a store and optional ranking cache."""
        self.store = store
        self.settings = settings
        self.cache = cache or ToasterCache(None, settings.ranking_cache_ttl_seconds)

    # ==========================================================================
    # Listings
    # ==========================================================================

    async def _all_toasters(self) -> list[Toaster]:
        return [
            toaster
            async for toaster in self.store.iter_toasters(
                self.settings.listing_page_size
            )
        ]

    async def list_toasters(self) -> list[Toaster]:
        """All toasters, newest first."""
        return newest_first(await self._all_toasters())

    async def hall_of_fame(self) -> list[Toaster]:
        """Best rated toasters (cached when Redis is available)."""
        # Read the version before scanning so a concurrent vote retires this result
        version = await self.cache.current_version()
        if version is not None:
            cached = await self.cache.get_hall_of_fame(version)
            if cached is not None:
                return cached

        ranking = best_rated(await self._all_toasters(), self.settings.hall_of_fame_size)
        if version is not None:
            await self.cache.set_hall_of_fame(ranking, version)
        return ranking

    async def get_toaster(self, toaster_id: int) -> Toaster:
        """Fetch one toaster.

        Raises:
            ToasterNotFoundError: If it does not exist.
        """
        toaster = await self.store.get_toaster(toaster_id)
        if toaster is None:
            raise ToasterNotFoundError
        return toaster

    # ==========================================================================
    # Rating Aggregation
    # ==========================================================================

    async def cast_vote(
        self,
        toaster_id: int,
        value: str | int | None,
        *,
        already_voted: bool = False,
    ) -> float:
        """Fold one vote into a toaster's rating.

        Order of checks: the value, then the client's vote marker, then the
        toaster itself. Nothing is written unless all three pass.

        Args:
            toaster_id: Toaster being rated.
            value: Submitted rating (1..10).
            already_voted: Whether the client holds a vote marker for it.

        Returns:
            The new mean rating.

        Raises:
            InvalidRatingError: Value is not an integer in [1, 10].
            AlreadyVotedError: Client already voted on this toaster.
            ToasterNotFoundError: Toaster does not exist.
            VoteConflictError: Every compare-and-set attempt lost a race.
        """
        rating_value = parse_rating(value)

        if already_voted:
            raise AlreadyVotedError

        for attempt in range(1, self.settings.vote_max_retries + 1):
            toaster = await self.get_toaster(toaster_id)
            new_rating, new_votes = apply_vote(
                toaster.rating, toaster.votes, rating_value
            )

            applied = await self.store.update_rating(
                toaster_id,
                expected_votes=toaster.votes,
                rating=new_rating,
                votes=new_votes,
            )
            if applied:
                logger.info(
                    "vote_cast",
                    toaster_id=toaster_id,
                    value=rating_value,
                    rating=round(new_rating, 4),
                    votes=new_votes,
                    attempt=attempt,
                )
                await self.cache.invalidate()
                return new_rating

            logger.info("vote_conflict_retry", toaster_id=toaster_id, attempt=attempt)

        logger.warning(
            "vote_conflict_exhausted",
            toaster_id=toaster_id,
            attempts=self.settings.vote_max_retries,
        )
        raise VoteConflictError
