"""Typed access to one transient cache key namespace."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from account_service.application.ports.cache_port import TransientCachePort

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class TypedCacheNamespace(Generic[ModelT]):
    """Serialize one pydantic model per `{prefix}:{identifier}` key."""

    def __init__(
        self,
        *,
        cache: TransientCachePort,
        prefix: str,
        model: type[ModelT],
        ttl: timedelta,
    ) -> None:
        self._cache = cache
        self._prefix = prefix
        self._model = model
        self._ttl = ttl

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def key(self, identifier: object) -> str:
        return f"{self._prefix}:{identifier}"

    async def get(self, identifier: object) -> ModelT | None:
        """Return the cached entry, treating undecodable payloads as missing."""

        key = self.key(identifier)
        raw = await self._cache.get(key)
        if raw is None:
            return None
        try:
            return self._model.model_validate_json(raw)
        except ValidationError:
            logger.warning("cache_entry_invalid key=%s model=%s", key, self._model.__name__)
            return None

    async def set(self, identifier: object, entry: ModelT) -> None:
        await self._cache.set(self.key(identifier), entry.model_dump_json(), ttl=self._ttl)

    async def update(self, identifier: object, entry: ModelT, *, preserve_ttl: bool) -> bool:
        return await self._cache.update(
            self.key(identifier),
            entry.model_dump_json(),
            preserve_ttl=preserve_ttl,
            ttl=None if preserve_ttl else self._ttl,
        )

    async def remove(self, identifier: object) -> None:
        await self._cache.remove(self.key(identifier))
