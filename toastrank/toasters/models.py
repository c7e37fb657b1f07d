"""Database models for toasters.

Cassandra table definitions for:
- Toasters: one row per uploaded image with its aggregate rating
- Id sequences: monotonically increasing integer ids, advanced with
  lightweight transactions (compare-and-set)

The rating is stored as a running mean plus the vote count. There is no vote
log; every vote is folded into the stored pair with ``apply_vote``.
"""

import heapq
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


DEFAULT_RATING = 0.0
MIN_RATING = 1
MAX_RATING = 10


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

TOASTER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.toasters (
    id BIGINT PRIMARY KEY,
    image TEXT,
    rating DOUBLE,
    votes INT,
    created_at TIMESTAMP
)
"""

# Single row per sequence name, advanced with IF next_id = ?
ID_SEQUENCE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.id_sequences (
    name TEXT PRIMARY KEY,
    next_id BIGINT
)
"""

TOASTERS_TABLES_CQL = [
    TOASTER_TABLE_CQL,
    ID_SEQUENCE_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Toaster:
    """Uploaded toaster image with its aggregate rating state."""

    id: int
    image: str
    rating: float
    votes: int
    created_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "Toaster":
        """Create Toaster from Cassandra row."""
        created_at = row.created_at
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return cls(
            id=row.id,
            image=row.image,
            rating=row.rating if row.rating is not None else DEFAULT_RATING,
            votes=row.votes or 0,
            created_at=created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "image": self.image,
            "rating": self.rating,
            "votes": self.votes,
            "created_at": self.created_at.isoformat(),
        }


def create_toaster(toaster_id: int, image: str) -> Toaster:
    """Factory for a freshly uploaded toaster with no votes."""
    return Toaster(
        id=toaster_id,
        image=image,
        rating=DEFAULT_RATING,
        votes=0,
        created_at=datetime.now(UTC),
    )


def apply_vote(rating: float, votes: int, value: int) -> tuple[float, int]:
    """Fold one vote into a stored (rating, votes) pair.

    Returns:
        Tuple of (new_rating, new_votes).
    """
    new_votes = votes + 1
    new_rating = (rating * votes + value) / new_votes
    return new_rating, new_votes


def newest_first(toasters: Iterable[Toaster]) -> list[Toaster]:
    """Order toasters newest first (ties broken by id)."""
    return sorted(toasters, key=lambda t: (t.created_at, t.id), reverse=True)


def best_rated(toasters: Iterable[Toaster], limit: int) -> list[Toaster]:
    """Top ``limit`` toasters by rating, then vote count, then recency."""
    return heapq.nlargest(
        limit, toasters, key=lambda t: (t.rating, t.votes, t.created_at, t.id)
    )
