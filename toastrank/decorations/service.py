"""Decorative banner picking for the presentation layer."""

import asyncio
import random
from pathlib import Path

import structlog


logger = structlog.get_logger(__name__)


class BannerProvider:
    """Picks a random banner from a directory.

    The only promise is that a returned path names a file that existed when
    the directory was listed. None means there is nothing to show.
    """

    def __init__(self, banner_dir: str | Path, url_prefix: str = "/banners") -> None:
        self.banner_dir = Path(banner_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def _list_banners(self) -> list[str]:
        try:
            return sorted(
                entry.name
                for entry in self.banner_dir.iterdir()
                if entry.is_file() and not entry.name.startswith(".")
            )
        except FileNotFoundError:
            return []

    async def pick(self) -> str | None:
        """Path of a random banner, or None."""
        try:
            banners = await asyncio.to_thread(self._list_banners)
        except OSError as e:
            logger.warning("banner_listing_failed", error=str(e))
            return None
        if not banners:
            return None
        return f"{self.url_prefix}/{random.choice(banners)}"  # noqa: S311
