"""Redis cache for the hall of fame.

Rankings only change on upload, vote, or deletion; each of those calls
``invalidate``, which bumps a version counter. A ranking is cached under the
version read *before* its rows were scanned, so a scan that raced with a
mutation lands under a stale version and is never served.

Redis failures never fail the request: the ranking is simply recomputed from
the store.
"""

import json
from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from redis.exceptions import RedisError

from .models import Toaster


if TYPE_CHECKING:
    from redis.asyncio import Redis


logger = structlog.get_logger(__name__)


HALL_OF_FAME_KEY = "toasters:hall_of_fame"
RANKING_VERSION_KEY = "toasters:ranking_version"


def hall_of_fame_key(version: int) -> str:
    """Cache key of the ranking computed at ``version``."""
    return f"{HALL_OF_FAME_KEY}:{version}"


class ToasterCache:
    """Hall of fame cache (optional Redis)."""

    def __init__(self, redis: "Redis | None", ttl_seconds: int) -> None:
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    async def current_version(self) -> int | None:
        """Current ranking version, or None when caching is unavailable."""
        if not self.redis:
            return None
        try:
            raw = await self.redis.get(RANKING_VERSION_KEY)
        except RedisError as e:
            logger.warning("ranking_cache_version_failed", error=str(e))
            return None
        return int(raw) if raw else 0

    async def get_hall_of_fame(self, version: int) -> list[Toaster] | None:
        """Ranking cached for ``version``, or None on miss."""
        if not self.redis:
            return None
        try:
            cached = await self.redis.get(hall_of_fame_key(version))
        except RedisError as e:
            logger.warning("ranking_cache_read_failed", error=str(e))
            return None
        if not cached:
            return None

        return [
            Toaster(
                id=item["id"],
                image=item["image"],
                rating=item["rating"],
                votes=item["votes"],
                created_at=datetime.fromisoformat(item["created_at"]),
            )
            for item in json.loads(cached)
        ]

    async def set_hall_of_fame(self, toasters: list[Toaster], version: int) -> None:
        """Store a ranking computed from rows read at ``version``."""
        if not self.redis:
            return
        try:
            await self.redis.setex(
                hall_of_fame_key(version),
                self.ttl_seconds,
                json.dumps([t.to_dict() for t in toasters]),
            )
        except RedisError as e:
            logger.warning("ranking_cache_write_failed", error=str(e))

    async def invalidate(self) -> None:
        """Retire every ranking cached so far (after a mutation)."""
        if not self.redis:
            return
        try:
            await self.redis.incr(RANKING_VERSION_KEY)
        except RedisError as e:
            logger.warning("ranking_cache_invalidate_failed", error=str(e))
