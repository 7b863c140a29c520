"""
Redis client initialization and connection management.

This module provides the Redis client used for per-entity mutation locks.
"""

import redis.asyncio as redis
from backend.app.core.config import settings


# Create async Redis client (connections are opened lazily)
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get Redis client instance.

    This can be used as a FastAPI dependency if needed.
    """
    return redis_client


async def close_redis() -> None:
    """Close pooled connections. Called once at shutdown."""
    await redis_client.aclose()
