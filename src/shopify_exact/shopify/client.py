"""Shopify Admin REST API client (order lookups for manual re-sync)."""

from typing import Optional

import httpx

from shopify_exact.core.logger import setup_logger
from shopify_exact.models.shopify import ShopifyOrder

logger = setup_logger(__name__)


class ShopifyClient:
    """Async HTTP client for the Shopify Admin API."""

    def __init__(
        self,
        store_url: str,
        access_token: str,
        api_version: str = "2025-01",
        client: Optional[httpx.AsyncClient] = None,
    ):
        store_url = store_url.rstrip("/")
        if not store_url.startswith("http"):
            store_url = f"https://{store_url}"
        self.store_url = store_url
        self.api_version = api_version
        self.client = client or httpx.AsyncClient(
            timeout=30.0,
            headers={"X-Shopify-Access-Token": access_token, "Accept": "application/json"},
        )

    async def get_order(self, order_id: int) -> Optional[ShopifyOrder]:
        """
        Fetch a single order.

        Returns:
            ShopifyOrder, or None if the order does not exist or the call failed
        """
        url = f"{self.store_url}/admin/api/{self.api_version}/orders/{order_id}.json"
        try:
            logger.info(f"Fetching Shopify order {order_id}")
            response = await self.client.get(url)
            if response.status_code == 404:
                logger.warning(f"Shopify order {order_id} not found")
                return None
            response.raise_for_status()

            payload = response.json().get("order")
            if not payload:
                logger.error(f"Shopify response for order {order_id} has no order body")
                return None
            return ShopifyOrder.model_validate(payload)

        except httpx.HTTPError as e:
            logger.error(f"HTTP error fetching Shopify order {order_id}: {e}")
            return None
        except Exception as e:
            logger.error(f"Error fetching Shopify order {order_id}: {e}", exc_info=True)
            return None

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
