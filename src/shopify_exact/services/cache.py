"""Reservation cache backends.

Fast-path flags used by the reservation gate ("lock" and "seen" entries).
The cache is an optimisation only: it is lost on restart and the database
remains the source of truth.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

import redis.asyncio as redis

from shopify_exact.core.logger import setup_logger

logger = setup_logger(__name__)


class ReservationCache(ABC):
    """Key/flag cache with per-entry TTL."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """True if the key is present and not expired."""
        pass

    @abstractmethod
    async def set(self, key: str, ttl_seconds: int) -> None:
        """Set (or refresh) a flag that expires after ttl_seconds."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a flag. Missing keys are ignored."""
        pass

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class InMemoryReservationCache(ReservationCache):
    """Process-local cache with absolute expiry and explicit eviction."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, float] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def exists(self, key: str) -> bool:
        async with self._lock:
            expires_at = self._entries.get(key)
            if expires_at is None:
                return False
            if self._clock() >= expires_at:
                del self._entries[key]
                return False
            return True

    async def set(self, key: str, ttl_seconds: int) -> None:
        async with self._lock:
            self._entries[key] = self._clock() + ttl_seconds
            self._evict_expired()

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    def _evict_expired(self) -> None:
        now = self._clock()
        for key in [k for k, expires_at in self._entries.items() if now >= expires_at]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


class RedisReservationCache(ReservationCache):
    """Redis-backed cache, shared by all workers behind the same Redis."""

    def __init__(
        self,
        host: str,
        port: int = 6379,
        db: int = 0,
        key_prefix: str = "shopify_exact:",
        client: Optional[redis.Redis] = None,
    ):
        self.key_prefix = key_prefix

        if client is not None:
            self.pool = None
            self.redis = client
        else:
            self.pool = redis.ConnectionPool(
                host=host,
                port=port,
                db=db,
                decode_responses=True,
                max_connections=10,
                socket_timeout=5.0,
                socket_connect_timeout=5.0,
                retry_on_timeout=True,
            )
            self.redis = redis.Redis(connection_pool=self.pool)
            logger.info(f"Redis reservation cache initialized: {host}:{port}/{db}")

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def exists(self, key: str) -> bool:
        return bool(await self.redis.exists(self._key(key)))

    async def set(self, key: str, ttl_seconds: int) -> None:
        await self.redis.set(self._key(key), "1", ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self.redis.delete(self._key(key))

    async def health_check(self) -> bool:
        try:
            await self.redis.ping()
            return True
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        try:
            await self.redis.close()
            if self.pool is not None:
                await self.pool.disconnect()
            logger.info("Redis reservation cache connection closed")
        except Exception as e:
            logger.error(f"Error closing Redis connection: {e}")
