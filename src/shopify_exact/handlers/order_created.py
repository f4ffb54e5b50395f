"""Shopify `orders/create` handling: reserve, compose, submit, commit or compensate."""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

from shopify_exact.core.exceptions import (
    CounterpartyResolutionError,
    ErpSubmissionError,
    IngestionError,
)
from shopify_exact.core.failure_log import FailureLog
from shopify_exact.core.logger import setup_logger
from shopify_exact.core.monitoring import capture_exception, set_order_context
from shopify_exact.erp.base import CounterpartyResolver
from shopify_exact.models.shopify import ShopifyCustomer, ShopifyOrder
from shopify_exact.services.address_reconciler import AddressReconciler
from shopify_exact.services.discounts import allocate_discounts
from shopify_exact.services.order_composer import OrderComposer
from shopify_exact.services.reservation_gate import ReservationDecision, ReservationGate

logger = setup_logger(__name__)


class IngestionOutcome(str, Enum):
    SUBMITTED = "submitted"
    DUPLICATE = "duplicate"
    FAILED = "failed"
    ERROR = "error"


@dataclass
class IngestionResult:
    outcome: IngestionOutcome
    order_id: int
    order_number: Optional[int] = None
    exact_order_id: Optional[str] = None
    exact_order_number: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["outcome"] = self.outcome.value
        return data


class OrderIngestionHandler:
    """Pushes one Shopify order to ExactOnline at most once."""

    def __init__(
        self,
        gate: ReservationGate,
        resolver: CounterpartyResolver,
        address_reconciler: AddressReconciler,
        composer: OrderComposer,
        failure_log: FailureLog,
    ):
        self.gate = gate
        self.resolver = resolver
        self.address_reconciler = address_reconciler
        self.composer = composer
        self.failure_log = failure_log

    async def handle(self, order: ShopifyOrder) -> IngestionResult:
        """
        Process an incoming order.

        Duplicates and reservation problems are absorbed (DUPLICATE). Business
        failures are logged and compensated (FAILED). Unexpected exceptions are
        compensated too and reported as ERROR.
        """
        set_order_context(order.id, order.order_number)
        log_extra = {"order_id": order.id, "order_number": order.order_number}

        try:
            decision = await self.gate.try_reserve(order.id, order.order_number)
        except Exception as e:
            logger.error(f"Reservation failed for order {order.id}, skipping: {e}", exc_info=True, extra=log_extra)
            return IngestionResult(IngestionOutcome.DUPLICATE, order.id, order.order_number, error=str(e))

        if decision != ReservationDecision.PROCEED:
            logger.info(f"Order {order.id} already handled, skipping", extra=log_extra)
            return IngestionResult(IngestionOutcome.DUPLICATE, order.id, order.order_number)

        try:
            return await self._submit(order)

        except IngestionError as e:
            logger.error(f"Order {order.id} failed: {e.message}", extra=log_extra)
            await self._record_failure(order, e.message)
            return IngestionResult(IngestionOutcome.FAILED, order.id, order.order_number, error=e.message)

        except Exception as e:
            logger.error(f"Unexpected error processing order {order.id}: {e}", exc_info=True, extra=log_extra)
            capture_exception(e, context=log_extra)
            await self._record_failure(order, f"{type(e).__name__}: {e}")
            return IngestionResult(IngestionOutcome.ERROR, order.id, order.order_number, error=str(e))

        finally:
            try:
                await self.gate.release_lock(order.id)
            except Exception as e:
                logger.error(f"Failed to release lock for order {order.id}: {e}", exc_info=True)

    async def _submit(self, order: ShopifyOrder) -> IngestionResult:
        customer = order.customer or ShopifyCustomer(email=order.email)
        customer_id = await self.resolver.resolve_or_create_customer(customer)
        if not customer_id:
            raise CounterpartyResolutionError(
                f"Customer {customer.email} could not be resolved in Exact", order_id=order.id
            )
        logger.info(f"Order {order.id}: Exact customer {customer_id}")

        allocation = allocate_discounts(order)
        delivery_date = self.composer.resolve_delivery_date(order)

        lines = await self.composer.compose_lines(order, allocation, delivery_date)
        shipping_line = await self.composer.build_shipping_line(order, delivery_date)
        if shipping_line is not None:
            lines.append(shipping_line)

        await self.address_reconciler.reconcile(customer_id, order)

        exact_order = self.composer.compose(order, customer_id, lines, allocation, delivery_date)
        logger.info(
            f"Submitting order {order.id} to Exact: {len(lines)} lines, "
            f"pickup discount {allocation.pickup_amount_excl_vat:.2f}"
        )

        result = await self.resolver.submit_sales_order(exact_order)
        if not result.success:
            raise ErpSubmissionError(
                result.error or "Exact did not accept the sales order", order_id=order.id
            )

        try:
            await self.gate.commit(order.id, result.exact_order_id, result.exact_order_number)
        except Exception as e:
            # The Exact order exists; the pending reservation still blocks redeliveries
            logger.error(f"Failed to commit reservation for order {order.id}: {e}", exc_info=True)

        logger.info(
            f"Order {order.id} submitted as Exact order {result.exact_order_number}",
            extra={"order_id": order.id, "order_number": order.order_number},
        )
        return IngestionResult(
            IngestionOutcome.SUBMITTED,
            order.id,
            order.order_number,
            exact_order_id=result.exact_order_id,
            exact_order_number=result.exact_order_number,
        )

    async def _record_failure(self, order: ShopifyOrder, error: str) -> None:
        self.failure_log.write(order.id, order.order_number, error)
        try:
            await self.gate.compensate(order.id)
        except Exception as e:
            logger.error(f"Compensation failed for order {order.id}: {e}", exc_info=True)
