"""Redis adapter for the transient cache port."""

from __future__ import annotations

from datetime import timedelta

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from account_service.application.ports.cache_port import (
    CacheUnavailableError,
    TransientCachePort,
)


def _ttl_milliseconds(ttl: timedelta) -> int:
    return max(1, int(ttl.total_seconds() * 1000))


class RedisTransientCache(TransientCachePort):
    """String cache backed by Redis; expiry is enforced by the server."""

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, redis_url: str, *, socket_timeout: float = 5.0) -> RedisTransientCache:
        client = aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
        except RedisError as error:
            raise CacheUnavailableError(f"redis get failed for {key}") from error
        return None if value is None else str(value)

    async def set(self, key: str, value: str, *, ttl: timedelta) -> None:
        try:
            await self._client.set(key, value, px=_ttl_milliseconds(ttl))
        except RedisError as error:
            raise CacheUnavailableError(f"redis set failed for {key}") from error

    async def update(
        self,
        key: str,
        value: str,
        *,
        preserve_ttl: bool,
        ttl: timedelta | None = None,
    ) -> bool:
        """Overwrite only existing keys (`XX`), keeping the expiry with `KEEPTTL`."""

        try:
            if preserve_ttl:
                stored = await self._client.set(key, value, xx=True, keepttl=True)
            else:
                if ttl is None:
                    raise ValueError("ttl is required when the expiry is not preserved")
                stored = await self._client.set(key, value, xx=True, px=_ttl_milliseconds(ttl))
        except RedisError as error:
            raise CacheUnavailableError(f"redis update failed for {key}") from error
        return bool(stored)

    async def remove(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as error:
            raise CacheUnavailableError(f"redis delete failed for {key}") from error

    async def close(self) -> None:
        await self._client.aclose()
