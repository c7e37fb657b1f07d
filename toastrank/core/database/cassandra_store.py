"""Cassandra implementation of ``ToasterStore``.

Consistency notes:
- Ids come from ``id_sequences`` rows advanced with ``IF next_id = ?``.
- Ratings are only written with ``IF votes = ?`` so two concurrent votes can
  never both apply on the same read.
- A toaster and its comment partition are removed in one logged batch.
"""

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

import structlog
from cassandra.query import BatchStatement, BatchType

from toastrank.comments.models import Comment, create_comment
from toastrank.core.exceptions import StorageError, ToasterNotFoundError
from toastrank.toasters.models import Toaster, create_toaster


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


TOASTER_SEQUENCE = "toasters"
COMMENT_SEQUENCE = "comments"


class CassandraToasterStore:
    """Toaster and comment persistence on Cassandra."""

    # Attempts to win the id sequence before giving up
    MAX_SEQUENCE_ATTEMPTS = 50

    def __init__(self, session: "Session", keyspace: str) -> None:
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        # Id sequences
        self._get_sequence = self.session.prepare(f"""
            SELECT next_id FROM {self.keyspace}.id_sequences WHERE name = ?
        """)

        self._init_sequence = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.id_sequences (name, next_id)
            VALUES (?, ?)
            IF NOT EXISTS
        """)

        self._advance_sequence = self.session.prepare(f"""
            UPDATE {self.keyspace}.id_sequences
            SET next_id = ?
            WHERE name = ?
            IF next_id = ?
        """)

        # Toasters
        self._insert_toaster = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.toasters
            (id, image, rating, votes, created_at)
            VALUES (?, ?, ?, ?, ?)
        """)

        self._get_toaster = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.toasters WHERE id = ?
        """)

        self._list_toasters = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.toasters
        """)

        self._update_rating = self.session.prepare(f"""
            UPDATE {self.keyspace}.toasters
            SET rating = ?, votes = ?
            WHERE id = ?
            IF votes = ?
        """)

        self._delete_toaster = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.toasters WHERE id = ?
        """)

        # Comments
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.toaster_comments
            (toaster_id, created_at, comment_id, comment)
            VALUES (?, ?, ?, ?)
        """)

        self._get_comments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.toaster_comments
            WHERE toaster_id = ?
        """)

        self._delete_comment = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.toaster_comments
            WHERE toaster_id = ? AND created_at = ? AND comment_id = ?
        """)

        self._delete_comments = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.toaster_comments WHERE toaster_id = ?
        """)

    # ==========================================================================
    # Id allocation
    # ==========================================================================

    async def _next_id(self, name: str) -> int:
        """Allocate the next id of a sequence (compare-and-set loop)."""
        for _ in range(self.MAX_SEQUENCE_ATTEMPTS):
            result = await self.session.aexecute(self._get_sequence, [name])
            row = result.one()

            if row is None:
                result = await self.session.aexecute(self._init_sequence, [name, 2])
                if result.was_applied:
                    return 1
                continue

            current = row.next_id
            result = await self.session.aexecute(
                self._advance_sequence, [current + 1, name, current]
            )
            if result.was_applied:
                return current

            logger.debug("sequence_contention", sequence=name, next_id=current)

        raise StorageError(f"Could not allocate id from sequence '{name}'")

    # ==========================================================================
    # Toasters
    # ==========================================================================

    async def create_toaster(self, image: str) -> Toaster:
        """Allocate an id and insert a toaster with no votes."""
        toaster = create_toaster(await self._next_id(TOASTER_SEQUENCE), image)

        await self.session.aexecute(
            self._insert_toaster,
            [
                toaster.id,
                toaster.image,
                toaster.rating,
                toaster.votes,
                toaster.created_at,
            ],
        )

        logger.info("toaster_inserted", toaster_id=toaster.id, image=image)
        return toaster

    async def get_toaster(self, toaster_id: int) -> Toaster | None:
        """Fetch one toaster, or None."""
        result = await self.session.aexecute(self._get_toaster, [toaster_id])
        row = result.one()
        return Toaster.from_row(row) if row else None

    async def iter_toasters(self, page_size: int) -> AsyncIterator[Toaster]:
        """Every toaster, in token order.

        Pages are requested explicitly with the paging state so that fetching
        the next page never blocks the event loop.
        """
        paging_state = None
        while True:
            statement = self._list_toasters.bind(())
            statement.fetch_size = page_size
            result = await self.session.aexecute(statement, paging_state=paging_state)
            for row in result.current_rows:
                yield Toaster.from_row(row)

            paging_state = result.paging_state
            if not paging_state:
                break

    async def update_rating(
        self,
        toaster_id: int,
        expected_votes: int,
        rating: float,
        votes: int,
    ) -> bool:
        """Compare-and-set the rating pair on the stored vote count."""
        result = await self.session.aexecute(
            self._update_rating,
            [rating, votes, toaster_id, expected_votes],
        )
        return bool(result.was_applied)

    async def delete_toaster(self, toaster_id: int) -> None:
        """Delete a toaster and its comment partition atomically."""
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(self._delete_comments, [toaster_id])
        batch.add(self._delete_toaster, [toaster_id])
        await self.session.aexecute(batch)

        logger.info("toaster_row_deleted", toaster_id=toaster_id)

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def add_comment(self, toaster_id: int, text: str) -> Comment:
        """Append a comment to an existing toaster.

        The toaster is checked again after the insert; if it was deleted in
        between, the comment is removed so no orphan partition survives.
        """
        if await self.get_toaster(toaster_id) is None:
            raise ToasterNotFoundError

        comment = create_comment(
            await self._next_id(COMMENT_SEQUENCE), toaster_id, text
        )
        await self.session.aexecute(
            self._insert_comment,
            [comment.toaster_id, comment.created_at, comment.id, comment.comment],
        )

        if await self.get_toaster(toaster_id) is None:
            await self.session.aexecute(
                self._delete_comment,
                [comment.toaster_id, comment.created_at, comment.id],
            )
            logger.info("orphan_comment_removed", toaster_id=toaster_id)
            raise ToasterNotFoundError

        return comment

    async def list_comments(self, toaster_id: int) -> list[Comment]:
        """Comments of one toaster, newest first (clustering order)."""
        rows = await self.session.aexecute(self._get_comments, [toaster_id])
        return [Comment.from_row(row) for row in rows]

