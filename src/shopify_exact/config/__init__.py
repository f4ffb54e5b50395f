"""Configuration module."""

from shopify_exact.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
