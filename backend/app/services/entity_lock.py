"""
Per-entity mutation locks backed by Redis.

Serializes writes to the same parcel or rider across requests and
worker processes. A lock is a ``SET NX EX`` key holding a random owner
token, so a crashed holder releases it after the TTL.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from redis.exceptions import RedisError

from backend.app.core.config import settings
from backend.app.core.exceptions import EntityLockedError

logger = logging.getLogger("parcel_delivery.locks")

LOCK_PREFIX = "lock:"


class EntityLock:
    """
    Usage:
        locks = EntityLock(redis)
        async with locks.hold("parcel", parcel_id):
            ...
    """

    def __init__(self, redis, ttl_seconds: int = None):
        self.redis = redis
        self.ttl_seconds = ttl_seconds or settings.entity_lock_ttl_seconds

    @staticmethod
    def key(entity: str, entity_id: Any) -> str:
        return f"{LOCK_PREFIX}{entity}:{entity_id}"

    @asynccontextmanager
    async def hold(self, entity: str, entity_id: Any) -> AsyncIterator[None]:
        """
        Hold the lock for ``entity``/``entity_id`` for the duration of the block.

        Raises:
            EntityLockedError: another request holds the lock
        """
        key = self.key(entity, entity_id)
        token = uuid.uuid4().hex

        try:
            acquired = await self.redis.set(key, token, ex=self.ttl_seconds, nx=True)
        except RedisError as e:
            # Availability over strict serialization when Redis is down
            logger.warning("Lock store unavailable, proceeding without %s: %s", key, e)
            yield
            return

        if not acquired:
            logger.info("Lock contention on %s", key)
            raise EntityLockedError(entity, entity_id)

        try:
            yield
        finally:
            await self._release(key, token)

    async def _release(self, key: str, token: str) -> None:
        try:
            if await self.redis.get(key) == token:
                await self.redis.delete(key)
        except RedisError as e:
            logger.warning("Could not release %s, it will expire: %s", key, e)
