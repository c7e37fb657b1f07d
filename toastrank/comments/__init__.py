"""Comments left on toasters.

Note: Router is not exported here to avoid circular imports.
Import directly from toastrank.comments.router when needed.
"""

from .models import COMMENTS_TABLES_CQL, Comment
from .service import CommentService


__all__ = [
    "COMMENTS_TABLES_CQL",
    "Comment",
    "CommentService",
]
