"""Utility modules for toastrank."""

from toastrank.utils.magic_bytes import detect_content_type, matches_extension


__all__ = ["detect_content_type", "matches_extension"]
