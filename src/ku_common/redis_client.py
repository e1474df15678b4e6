"""Shared Redis connection for per-user rate-limit counters.

Balances and settlement idempotency never touch Redis; both live in
PostgreSQL behind the UNIQUE index on payment_history.reference.
"""

import redis.asyncio as aioredis

from config.settings import settings

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """FastAPI dependency: the lazily created process-wide client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _client


async def ping_redis() -> None:
    """Raise if Redis is unreachable."""
    client = await get_redis()
    await client.ping()


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
