"""Shopify Admin API access."""

from shopify_exact.shopify.client import ShopifyClient

__all__ = ["ShopifyClient"]
