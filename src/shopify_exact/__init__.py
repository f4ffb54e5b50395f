"""Shopify to ExactOnline order sync."""

__version__ = "1.0.0"
