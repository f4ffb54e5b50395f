"""Database module."""

from .base import Base, get_engine, get_session_factory, init_db
from .models import ProcessedOrder
from .repository import ProcessedOrderRepository

__all__ = [
    "Base",
    "get_engine",
    "get_session_factory",
    "init_db",
    "ProcessedOrder",
    "ProcessedOrderRepository",
]
