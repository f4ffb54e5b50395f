"""SQLAlchemy models for processed order reservations."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ProcessedOrder(Base):
    """
    Reservation of a Shopify order for submission to ExactOnline.

    A row is inserted with empty Exact fields before the ERP is called, filled
    in after a successful submission and deleted when the submission fails so
    that a redelivered webhook can try again.
    """

    __tablename__ = "processed_orders"

    shopify_order_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)

    # Secondary guard against id drift between deliveries
    shopify_order_number: Mapped[Optional[int]] = mapped_column(
        BigInteger, unique=True, nullable=True
    )

    processed_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    exact_order_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    exact_order_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    @property
    def is_pending(self) -> bool:
        return self.exact_order_id is None and self.exact_order_number is None
