"""Redis-backed reveal progress.

One hash per play: reveal:{play_id} -> {coverage, completed}.
HINCRBY makes concurrent scratch reports additive without a read-modify-write,
and HSETNX on `completed` lets exactly one caller observe the completion.
Keys expire after REVEAL_TTL_SECONDS; the durable state lives on the play row.
"""

from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis

from config.settings import settings
from src.sc_common.redis_client import get_redis

_KEY_PREFIX = "reveal:"


def _key(play_id: str) -> str:
    return f"{_KEY_PREFIX}{play_id}"


class RedisRevealStore:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
        ttl_seconds: int | None = None,
    ) -> None:
        self._redis_factory = redis_factory
        self._ttl = ttl_seconds or settings.REVEAL_TTL_SECONDS

    async def get(self, play_id: str) -> tuple[int, bool]:
        redis = await self._redis_factory()
        data = await redis.hgetall(_key(play_id))
        return int(data.get("coverage", 0)), data.get("completed") == "1"

    async def add_coverage(self, play_id: str, delta_bps: int) -> int:
        redis = await self._redis_factory()
        total = await redis.hincrby(_key(play_id), "coverage", delta_bps)
        await redis.expire(_key(play_id), self._ttl)
        return int(total)

    async def set_coverage(self, play_id: str, coverage_bps: int) -> None:
        redis = await self._redis_factory()
        await redis.hset(_key(play_id), "coverage", coverage_bps)
        await redis.expire(_key(play_id), self._ttl)

    async def mark_complete(self, play_id: str) -> bool:
        redis = await self._redis_factory()
        created = await redis.hsetnx(_key(play_id), "completed", "1")
        await redis.expire(_key(play_id), self._ttl)
        return bool(created)
