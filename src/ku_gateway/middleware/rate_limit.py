"""Per-user fixed-window rate limiting on Redis.

Applied as a route dependency (after authentication, so the key is the user
id rather than a proxy IP):

    @router.post("/settle-purchase", dependencies=[Depends(settle_rate_limit)])

Redis logic per request:
    SET ratelimit:{user_id}:{group} 0 EX window NX
    count = INCR key
    if count > limit: raise RateLimitError (429)
"""

import logging
from typing import Annotated

import redis.asyncio as aioredis
from fastapi import Depends

from config.settings import settings
from src.ku_common.errors import RateLimitError
from src.ku_common.redis_client import get_redis
from src.ku_gateway.auth.dependencies import CurrentUser

logger = logging.getLogger(__name__)


class RateLimiter:
    def __init__(self, group: str, limit: int, window_seconds: int = 60) -> None:
        self.group = group
        self.limit = limit
        self.window_seconds = window_seconds

    def key(self, user_id: str) -> str:
        return f"ratelimit:{user_id}:{self.group}"

    async def hit(self, redis: aioredis.Redis, user_id: str) -> int:
        """Count one request; raise RateLimitError once the window is exhausted."""
        key = self.key(user_id)
        # Created with its TTL; INCR preserves it
        await redis.set(key, 0, ex=self.window_seconds, nx=True)
        count = int(await redis.incr(key))
        if count > self.limit:
            logger.warning("Rate limit hit: user=%s group=%s count=%d", user_id, self.group, count)
            raise RateLimitError()
        return count

    async def __call__(
        self,
        current_user: CurrentUser,
        redis: Annotated[aioredis.Redis, Depends(get_redis)],
    ) -> None:
        await self.hit(redis, str(current_user.id))


settle_rate_limit = RateLimiter("settle", settings.SETTLE_RATE_LIMIT_PER_MINUTE)
checkout_rate_limit = RateLimiter("checkout", settings.CHECKOUT_RATE_LIMIT_PER_MINUTE)
