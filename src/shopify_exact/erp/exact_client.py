"""ExactOnline REST API client."""

from typing import Any, Dict, List, Optional

import httpx

from shopify_exact.core.logger import setup_logger
from shopify_exact.core.token_manager import ExactTokenManager
from shopify_exact.erp.base import AddressService, CounterpartyResolver, SubmissionResult
from shopify_exact.models.exact import ExactAddress, ExactItem, ExactOrder
from shopify_exact.models.shopify import ShopifyCustomer

logger = setup_logger(__name__)


class ExactApiError(Exception):
    """Exact answered with an error or no bearer token was available."""


def odata_quote(value: str) -> str:
    """Escape a literal for use inside an OData filter string."""
    return value.replace("'", "''")


def odata_results(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Unwrap `{"d": {"results": [...]}}` (or `{"d": [...]}`) into a list of rows."""
    envelope = data.get("d") if isinstance(data, dict) else None
    if envelope is None:
        return []
    if isinstance(envelope, list):
        return envelope
    if isinstance(envelope, dict):
        results = envelope.get("results")
        if isinstance(results, list):
            return results
        return [envelope]
    return []


def odata_entity(data: Dict[str, Any]) -> Dict[str, Any]:
    """Unwrap a single created/fetched entity from `{"d": {...}}`."""
    rows = odata_results(data)
    return rows[0] if rows else {}


class ExactOnlineClient(CounterpartyResolver, AddressService):
    """Async HTTP client for the ExactOnline REST API (one division)."""

    def __init__(
        self,
        base_url: str,
        division: int,
        token_manager: ExactTokenManager,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize API client for a division."""
        self.base_url = base_url.rstrip("/")
        self.division = division
        self.token_manager = token_manager
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/v1/{self.division}/{path}"

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make an authenticated request against the division endpoint.

        Returns:
            Parsed JSON body ({} for empty responses such as PUT 204)

        Raises:
            ExactApiError: no token could be obtained
            httpx.HTTPError: transport error, timeout or non-2xx status
        """
        token = await self.token_manager.get_access_token()
        if not token:
            raise ExactApiError("No valid Exact access token")

        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

        logger.debug(f"Exact {method} {path}")
        response = await self.client.request(
            method,
            self._url(path),
            params=params,
            json=json,
            headers=headers,
        )
        response.raise_for_status()

        if not response.content:
            return {}
        return response.json()

    # ------------------------------------------------------------------
    # Counterparty resolution
    # ------------------------------------------------------------------

    async def find_account_by_email(self, email: str) -> Optional[str]:
        data = await self._request(
            "GET",
            "crm/Accounts",
            params={
                "$filter": f"Email eq '{odata_quote(email)}'",
                "$select": "ID,Name,Email",
            },
        )
        rows = odata_results(data)
        return rows[0].get("ID") if rows else None

    async def resolve_or_create_customer(self, customer: ShopifyCustomer) -> Optional[str]:
        """Find the account by e-mail; create a customer account when none exists."""
        if not customer.email:
            logger.warning(f"Shopify customer {customer.id} has no email, cannot resolve account")
            return None

        try:
            account_id = await self.find_account_by_email(customer.email)
            if account_id:
                logger.info(f"Found Exact account {account_id} for {customer.email}")
                return account_id

            payload: Dict[str, Any] = {
                "Name": customer.full_name or customer.email,
                "Email": customer.email,
                "Status": "C",
            }
            address = customer.default_address
            if address:
                payload.update({
                    "AddressLine1": address.address1,
                    "City": address.city,
                    "Postcode": address.zip,
                    "Country": address.country_code,
                })

            data = await self._request(
                "POST",
                "crm/Accounts",
                json={k: v for k, v in payload.items() if v is not None},
            )
            account_id = odata_entity(data).get("ID")
            logger.info(f"Created Exact account {account_id} for {customer.email}")
            return account_id

        except Exception as e:
            logger.error(f"Error resolving Exact account for {customer.email}: {e}", exc_info=True)
            return None

    async def get_vat_rate(self, vat_code: Optional[str]) -> float:
        """Look up a VAT code's percentage (a fraction). 0 when unknown."""
        if not vat_code or not vat_code.strip():
            return 0.0

        try:
            data = await self._request(
                "GET",
                "vat/VATCodes",
                params={
                    "$filter": f"Code eq '{odata_quote(vat_code.strip())}'",
                    "$select": "Code,Percentage",
                },
            )
            rows = odata_results(data)
            return float(rows[0].get("Percentage") or 0) if rows else 0.0
        except Exception as e:
            logger.warning(f"VAT lookup failed for code {vat_code}: {e}")
            return 0.0

    async def resolve_or_create_item(self, sku: str) -> Optional[ExactItem]:
        """Find the item by code; create a sales item when none exists."""
        try:
            data = await self._request(
                "GET",
                "logistics/Items",
                params={"$filter": f"Code eq '{odata_quote(sku)}'"},
            )
            rows = odata_results(data)
            if rows:
                row = rows[0]
            else:
                logger.info(f"Item {sku} not found in Exact, creating it")
                data = await self._request(
                    "POST",
                    "logistics/Items",
                    json={"Code": sku, "Description": sku, "IsSalesItem": True},
                )
                row = odata_entity(data)

            if not row.get("ID"):
                logger.error(f"Exact returned no item id for {sku}")
                return None

            item = ExactItem.model_validate(row)
            item.vat_rate = await self.get_vat_rate(item.sales_vat_code)
            return item

        except Exception as e:
            logger.error(f"Error resolving Exact item {sku}: {e}", exc_info=True)
            return None

    async def submit_sales_order(self, order: ExactOrder) -> SubmissionResult:
        """POST the sales order. Timeouts and HTTP errors become a failed result."""
        try:
            data = await self._request("POST", "salesorder/SalesOrders", json=order.to_payload())
            created = odata_entity(data)
            order_number = created.get("OrderNumber")
            return SubmissionResult(
                success=True,
                exact_order_id=created.get("OrderID"),
                exact_order_number=str(order_number) if order_number is not None else None,
            )

        except httpx.TimeoutException as e:
            logger.error(f"Timeout submitting sales order to Exact: {e}")
            return SubmissionResult(success=False, error=f"Timeout: {e}")

        except httpx.HTTPStatusError as e:
            error = f"HTTP {e.response.status_code}: {e.response.text}"
            logger.error(f"Exact rejected sales order: {error}")
            return SubmissionResult(success=False, error=error)

        except Exception as e:
            logger.error(f"Error submitting sales order to Exact: {e}", exc_info=True)
            return SubmissionResult(success=False, error=str(e))

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    async def list_addresses(self, customer_id: str, address_type: int) -> List[ExactAddress]:
        """
        List the account's addresses of one type.

        Raises on failure: an empty list would make the caller create a duplicate.
        """
        data = await self._request(
            "GET",
            "crm/Addresses",
            params={"$filter": f"Account eq guid'{customer_id}' and Type eq {address_type}"},
        )
        return [ExactAddress.model_validate(row) for row in odata_results(data)]

    async def create_address(self, address: ExactAddress) -> Optional[ExactAddress]:
        try:
            payload = address.to_payload()
            payload.pop("ID", None)
            data = await self._request("POST", "crm/Addresses", json=payload)
            created = odata_entity(data)
            return ExactAddress.model_validate(created) if created else address
        except Exception as e:
            logger.error(f"Error creating Exact address for {address.account}: {e}", exc_info=True)
            return None

    async def update_address(self, address_id: str, address: ExactAddress) -> bool:
        try:
            payload = address.to_payload()
            payload.pop("ID", None)
            await self._request("PUT", f"crm/Addresses(guid'{address_id}')", json=payload)
            return True
        except Exception as e:
            logger.error(f"Error updating Exact address {address_id}: {e}", exc_info=True)
            return False

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
