from __future__ import annotations

from datetime import timedelta
from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from account_service.application.ports.cache_port import CacheUnavailableError
from account_service.infrastructure.cache.redis_cache import RedisTransientCache


class FakeRedisClient:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.set_calls: list[dict[str, Any]] = []
        self.error: Exception | None = None

    async def get(self, key: str) -> str | None:
        if self.error is not None:
            raise self.error
        return self.values.get(key)

    async def set(self, key: str, value: str, **options: Any) -> bool | None:
        if self.error is not None:
            raise self.error
        self.set_calls.append({"key": key, **options})
        if options.get("xx") and key not in self.values:
            return None
        self.values[key] = value
        return True

    async def delete(self, key: str) -> int:
        return 1 if self.values.pop(key, None) is not None else 0


@pytest.mark.asyncio
async def test_set_uses_millisecond_expiry() -> None:
    client = FakeRedisClient()
    cache = RedisTransientCache(client)  # type: ignore[arg-type]

    await cache.set("k", "v", ttl=timedelta(minutes=5))

    assert client.set_calls[0] == {"key": "k", "px": 300_000}
    assert await cache.get("k") == "v"


@pytest.mark.asyncio
async def test_update_only_touches_existing_keys_and_keeps_ttl() -> None:
    client = FakeRedisClient()
    cache = RedisTransientCache(client)  # type: ignore[arg-type]

    assert await cache.update("missing", "v", preserve_ttl=True) is False
    await cache.set("k", "v1", ttl=timedelta(seconds=30))
    assert await cache.update("k", "v2", preserve_ttl=True) is True

    assert client.set_calls[-1] == {"key": "k", "xx": True, "keepttl": True}
    assert client.values["k"] == "v2"


@pytest.mark.asyncio
async def test_update_can_restart_expiry() -> None:
    client = FakeRedisClient()
    cache = RedisTransientCache(client)  # type: ignore[arg-type]
    await cache.set("k", "v1", ttl=timedelta(seconds=30))

    await cache.update("k", "v2", preserve_ttl=False, ttl=timedelta(seconds=10))

    assert client.set_calls[-1] == {"key": "k", "xx": True, "px": 10_000}


@pytest.mark.asyncio
async def test_redis_errors_become_cache_unavailable() -> None:
    client = FakeRedisClient()
    client.error = RedisConnectionError("refused")
    cache = RedisTransientCache(client)  # type: ignore[arg-type]

    with pytest.raises(CacheUnavailableError):
        await cache.get("k")
    with pytest.raises(CacheUnavailableError):
        await cache.set("k", "v", ttl=timedelta(seconds=1))
