"""Duplicate-suppression gate.

Claims a Shopify order exactly once before anything is sent to ExactOnline.
The database row is the source of truth; the cache only short-circuits
repeated deliveries.
"""

from enum import Enum
from typing import Optional

from sqlalchemy.exc import IntegrityError

from shopify_exact.config.constants import LOCK_KEY_PREFIX, SEEN_KEY_PREFIX
from shopify_exact.core.logger import setup_logger
from shopify_exact.db.models import ProcessedOrder
from shopify_exact.db.repository import ProcessedOrderRepository
from shopify_exact.services.cache import ReservationCache

logger = setup_logger(__name__)


class ReservationDecision(str, Enum):
    PROCEED = "proceed"
    ALREADY_HANDLED = "already_handled"


def lock_key(order_id: int) -> str:
    return f"{LOCK_KEY_PREFIX}{order_id}"


def seen_key(order_id: int) -> str:
    return f"{SEEN_KEY_PREFIX}{order_id}"


class ReservationGate:
    """Reserve / commit / compensate protocol around the processed_orders table.

    Every store operation runs in its own session so the durable insert is
    committed before the caller talks to the ERP.
    """

    def __init__(
        self,
        session_factory,
        cache: ReservationCache,
        lock_ttl_seconds: int = 300,
        seen_ttl_seconds: int = 7200,
    ):
        self.session_factory = session_factory
        self.cache = cache
        self.lock_ttl_seconds = lock_ttl_seconds
        self.seen_ttl_seconds = seen_ttl_seconds

    async def try_reserve(self, order_id: int, order_number: Optional[int]) -> ReservationDecision:
        """
        Claim an order for submission.

        Args:
            order_id: Shopify order id
            order_number: Shopify order number (secondary uniqueness guard)

        Returns:
            PROCEED if this caller owns the order, ALREADY_HANDLED otherwise
        """
        if await self.cache.exists(lock_key(order_id)):
            logger.info(f"Order {order_id} is being processed by another request")
            return ReservationDecision.ALREADY_HANDLED

        if await self.cache.exists(seen_key(order_id)):
            logger.info(f"Order {order_id} already seen (cache)")
            return ReservationDecision.ALREADY_HANDLED

        async with self.session_factory() as session:
            repo = ProcessedOrderRepository(session)

            if await repo.get_by_order_id(order_id) is not None:
                logger.info(f"Order {order_id} already processed (database)")
                try:
                    await self.cache.set(seen_key(order_id), self.seen_ttl_seconds)
                except Exception as e:
                    logger.warning(f"Failed to refresh seen entry for order {order_id}: {e}")
                return ReservationDecision.ALREADY_HANDLED

            if order_number is not None and await repo.get_by_order_number(order_number) is not None:
                logger.info(f"Order number {order_number} already processed under another id")
                return ReservationDecision.ALREADY_HANDLED

        # Fresh session: the insert must not share a transaction with the reads
        async with self.session_factory() as session:
            repo = ProcessedOrderRepository(session)
            try:
                await repo.insert_pending(order_id, order_number)
            except IntegrityError:
                logger.info(f"Order {order_id} reserved concurrently by another request")
                return ReservationDecision.ALREADY_HANDLED

        # The committed row already owns the order; cache entries are optional
        try:
            await self.cache.set(seen_key(order_id), self.seen_ttl_seconds)
            await self.cache.set(lock_key(order_id), self.lock_ttl_seconds)
        except Exception as e:
            logger.warning(f"Order {order_id} reserved without cache entries: {e}", exc_info=True)

        logger.info(f"Order {order_id} reserved", extra={"order_id": order_id, "order_number": order_number})
        return ReservationDecision.PROCEED

    async def commit(
        self,
        order_id: int,
        exact_order_id: Optional[str],
        exact_order_number: Optional[str],
    ) -> None:
        """Store the Exact identifiers on the reservation and drop the lock."""
        async with self.session_factory() as session:
            updated = await ProcessedOrderRepository(session).mark_submitted(
                order_id, exact_order_id, exact_order_number
            )
        if not updated:
            logger.warning(f"No reservation found to commit for order {order_id}")

        await self.cache.delete(lock_key(order_id))
        logger.info(f"Order {order_id} committed as Exact order {exact_order_number}")

    async def compensate(self, order_id: int) -> None:
        """Undo a reservation so a later delivery can retry the order."""
        async with self.session_factory() as session:
            deleted = await ProcessedOrderRepository(session).delete_by_order_id(order_id)

        await self.cache.delete(seen_key(order_id))
        await self.cache.delete(lock_key(order_id))
        logger.info(f"Order {order_id} reservation released (rows deleted: {deleted})")

    async def release_lock(self, order_id: int) -> None:
        await self.cache.delete(lock_key(order_id))

    async def lookup(self, order_id: int) -> Optional[ProcessedOrder]:
        async with self.session_factory() as session:
            return await ProcessedOrderRepository(session).get_by_order_id(order_id)
