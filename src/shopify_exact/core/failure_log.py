#!/usr/bin/env python3
"""
Failed Order Log

Append-only audit trail of orders that could not be pushed to ExactOnline.
One plain text line per failure; the file is never read back by the service.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from shopify_exact.core.logger import NL_TZ, setup_logger

logger = setup_logger(__name__)


class FailureLog:
    """Writes `[timestamp] order_id=... order_number=... error=...` lines."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def format_entry(
        self,
        order_id: int,
        order_number: Optional[int],
        error: str,
        timestamp: Optional[datetime] = None,
    ) -> str:
        when = (timestamp or datetime.now(NL_TZ)).strftime("%Y-%m-%d %H:%M:%S")
        # Keep one failure per line
        message = " ".join(str(error).split())
        return f"[{when}] order_id={order_id} order_number={order_number} error={message}"

    def write(self, order_id: int, order_number: Optional[int], error: str) -> None:
        """
        Append a failure line.

        Args:
            order_id: Shopify order id
            order_number: Shopify order number (may be None)
            error: Error message
        """
        entry = self.format_entry(order_id, order_number, error)
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(entry + "\n")
            logger.info(f"Logged failed order {order_id} to {self.path}")
        except OSError as e:
            logger.error(f"Failed to write failure log {self.path}: {e}")
