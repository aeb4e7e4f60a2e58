"""
Per-order mutation guard using Redis.

At most one tracking mutation (create, status change, reset) may be in flight
for an order. The guard is a Redis key set with NX and a TTL, so a crashed
request cannot hold an order forever.
"""

import uuid
import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
from redis.exceptions import RedisError

from admin_console.app.core.config import settings
from admin_console.app.core.exceptions import (
    TransitionInFlightError,
    RemoteServiceUnavailableError,
)

logger = logging.getLogger("admin_console.mutation_guard")

# Redis key prefix for in-flight order mutations
INFLIGHT_PREFIX = "fulfillment:inflight:"

# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await redis_client.ping()
    except Exception:
        return False


class OrderMutationGuard:
    """Holds an exclusive, expiring in-flight marker per order."""

    def __init__(self, client, ttl_seconds: int = None):
        self.client = client
        self.ttl_seconds = ttl_seconds or settings.mutation_guard_ttl_seconds

    @staticmethod
    def _key(order_id: str) -> str:
        return f"{INFLIGHT_PREFIX}{order_id}"

    async def acquire(self, order_id: str) -> str:
        """
        Mark an order as having a mutation in flight.

        Returns:
            Token required to release the marker

        Raises:
            TransitionInFlightError: another mutation already holds the order
            RemoteServiceUnavailableError: Redis is unreachable (fail closed)
        """
        token = uuid.uuid4().hex
        try:
            acquired = await self.client.set(
                self._key(order_id), token, ex=self.ttl_seconds, nx=True
            )
        except RedisError as e:
            logger.error("Mutation guard unavailable for order %s: %s", order_id, e)
            raise RemoteServiceUnavailableError("Mutation guard store is unavailable")

        if not acquired:
            raise TransitionInFlightError(order_id)
        return token

    async def release(self, order_id: str, token: str) -> bool:
        """Release the marker if it is still ours (it may have expired and been re-taken)."""
        key = self._key(order_id)
        try:
            if await self.client.get(key) != token:
                return False
            await self.client.delete(key)
            return True
        except RedisError as e:
            # TTL expiry clears the marker eventually
            logger.warning("Could not release mutation guard for order %s: %s", order_id, e)
            return False

    async def is_held(self, order_id: str) -> bool:
        try:
            return await self.client.exists(self._key(order_id)) > 0
        except RedisError:
            return False

    @asynccontextmanager
    async def hold(self, order_id: str):
        token = await self.acquire(order_id)
        try:
            yield token
        finally:
            await self.release(order_id, token)


async def get_mutation_guard() -> OrderMutationGuard:
    """FastAPI dependency for the shared mutation guard."""
    return OrderMutationGuard(redis_client)
