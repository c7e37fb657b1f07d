"""Configuration for toastrank."""

from toastrank.config.settings import Settings, get_settings


__all__ = ["Settings", "get_settings"]
