"""Moderation: credential-gated deletion of toasters.

Note: Router is not exported here to avoid circular imports.
"""

from .service import ModerationService


__all__ = [
    "ModerationService",
]
