"""Repository for processed order reservations."""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ProcessedOrder


class ProcessedOrderRepository:
    """Data access layer for ProcessedOrder model."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with async session."""
        self.session = session

    async def get_by_order_id(self, order_id: int) -> Optional[ProcessedOrder]:
        """Get the reservation for a Shopify order id."""
        query = select(ProcessedOrder).where(ProcessedOrder.shopify_order_id == order_id)
        result = await self.session.execute(query)
        return result.scalars().first()

    async def get_by_order_number(self, order_number: int) -> Optional[ProcessedOrder]:
        """Get the reservation for a Shopify order number."""
        query = select(ProcessedOrder).where(ProcessedOrder.shopify_order_number == order_number)
        result = await self.session.execute(query)
        return result.scalars().first()

    async def insert_pending(self, order_id: int, order_number: Optional[int]) -> ProcessedOrder:
        """
        Insert a pending reservation (Exact fields empty) and commit.

        Raises:
            IntegrityError: the order id or order number is already reserved
        """
        record = ProcessedOrder(
            shopify_order_id=order_id,
            shopify_order_number=order_number,
            processed_at=datetime.utcnow(),
        )
        self.session.add(record)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise
        return record

    async def mark_submitted(
        self,
        order_id: int,
        exact_order_id: Optional[str],
        exact_order_number: Optional[str],
    ) -> int:
        """Store the Exact identifiers. Returns count of updated rows."""
        stmt = (
            update(ProcessedOrder)
            .where(ProcessedOrder.shopify_order_id == order_id)
            .values(
                exact_order_id=exact_order_id,
                exact_order_number=exact_order_number,
                processed_at=datetime.utcnow(),
            )
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount

    async def delete_by_order_id(self, order_id: int) -> int:
        """Delete the reservation for an order. Returns count of deleted rows."""
        stmt = delete(ProcessedOrder).where(ProcessedOrder.shopify_order_id == order_id)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount
