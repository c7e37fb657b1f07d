"""Decoration provider (random banners)."""

from toastrank.decorations.service import BannerProvider


__all__ = ["BannerProvider"]
