"""Persistence interface for toasters and comments.

Services depend on ``ToasterStore`` rather than on a session object, so the
Cassandra implementation can be swapped for a test double.
"""

from collections.abc import AsyncIterator
from typing import Protocol

from toastrank.comments.models import Comment
from toastrank.toasters.models import Toaster


class ToasterStore(Protocol):
    """Item and comment operations used by the services."""

    async def create_toaster(self, image: str) -> Toaster:
        """Allocate an id and insert a toaster with no votes."""
        ...

    async def get_toaster(self, toaster_id: int) -> Toaster | None:
        """Fetch one toaster, or None."""
        ...

    def iter_toasters(self, page_size: int) -> AsyncIterator[Toaster]:
        """Every toaster, in no particular order, fetched ``page_size`` at a time."""
        ...

    async def update_rating(
        self,
        toaster_id: int,
        expected_votes: int,
        rating: float,
        votes: int,
    ) -> bool:
        """Compare-and-set the rating pair.

        Applies only if the stored vote count still equals ``expected_votes``.
        Returns whether the write was applied.
        """
        ...

    async def delete_toaster(self, toaster_id: int) -> None:
        """Delete a toaster and all of its comments."""
        ...

    async def add_comment(self, toaster_id: int, text: str) -> Comment:
        """Append a comment to an existing toaster."""
        ...

    async def list_comments(self, toaster_id: int) -> list[Comment]:
        """Comments of one toaster, newest first."""
        ...
