"""FastAPI dependencies for decorations."""

from typing import Annotated

from fastapi import Depends, Request

from .service import BannerProvider


async def get_banner_provider(request: Request) -> BannerProvider | None:
    """Get banner provider from app state (optional)."""
    return getattr(request.app.state, "banner_provider", None)


BannerProviderDep = Annotated[BannerProvider | None, Depends(get_banner_provider)]


async def pick_banner(provider: BannerProvider | None) -> str | None:
    """Banner for a page, or None when no provider is configured."""
    if provider is None:
        return None
    return await provider.pick()
