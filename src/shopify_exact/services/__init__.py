"""Services - reservation gate, discounts, order composition and addresses."""

from shopify_exact.services.address_reconciler import AddressReconciler
from shopify_exact.services.cache import (
    InMemoryReservationCache,
    RedisReservationCache,
    ReservationCache,
)
from shopify_exact.services.discounts import allocate_discounts
from shopify_exact.services.order_composer import OrderComposer
from shopify_exact.services.reservation_gate import ReservationDecision, ReservationGate

__all__ = [
    "AddressReconciler",
    "InMemoryReservationCache",
    "OrderComposer",
    "RedisReservationCache",
    "ReservationCache",
    "ReservationDecision",
    "ReservationGate",
    "allocate_discounts",
]
