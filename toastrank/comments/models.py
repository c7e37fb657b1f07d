"""Database models for toaster comments.

Comments are partitioned by toaster so that:
- listing a toaster's comments is a single-partition read, newest first
- deleting a toaster removes all of its comments with one partition delete
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition by toaster_id; clustering by created_at for newest-first reads
COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.toaster_comments (
    toaster_id BIGINT,
    created_at TIMESTAMP,
    comment_id BIGINT,
    comment TEXT,
    PRIMARY KEY ((toaster_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at DESC, comment_id DESC)
"""

COMMENTS_TABLES_CQL = [
    COMMENT_TABLE_CQL,
]


@dataclass
class Comment:
    """Comment left on a toaster."""

    id: int
    toaster_id: int
    comment: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        created_at = row.created_at
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return cls(
            id=row.comment_id,
            toaster_id=row.toaster_id,
            comment=row.comment,
            created_at=created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "toaster_id": self.toaster_id,
            "comment": self.comment,
            "created_at": self.created_at.isoformat(),
        }


def create_comment(comment_id: int, toaster_id: int, text: str) -> Comment:
    """Factory for a new comment."""
    return Comment(
        id=comment_id,
        toaster_id=toaster_id,
        comment=text,
        created_at=datetime.now(UTC),
    )
