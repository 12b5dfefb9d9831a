from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple

import redis.asyncio as redis

from fleet_access.configs.logging_config import get_logger

log = get_logger(__name__)

Clock = Callable[[], float]


class TTLCache(ABC):
    """
    Cache with explicit staleness.

    `get` returns `(value, is_stale)`. A missing key is `(None, True)`. An
    entry older than `ttl` is still returned, flagged stale, until it is
    older than `max_stale`, after which it is treated as missing.
    """

    def __init__(self, ttl: float, max_stale: Optional[float] = None, clock: Clock = time.time):
        self.ttl = ttl
        self.max_stale = max_stale if max_stale is not None else ttl
        self._clock = clock

    def _age_state(self, stored_at: float) -> Tuple[bool, bool]:
        age = self._clock() - stored_at
        return age > self.max_stale, age > self.ttl

    async def get(self, key: str) -> Tuple[Any, bool]:
        entry = await self._read(key)
        if entry is None:
            return None, True
        value, stored_at = entry
        expired, stale = self._age_state(stored_at)
        if expired:
            await self.invalidate(key)
            return None, True
        return value, stale

    async def set(self, key: str, value: Any) -> None:
        await self._write(key, value, self._clock())

    # ----------------------------
    # Backend hooks
    # ----------------------------

    @abstractmethod
    async def _read(self, key: str) -> Optional[Tuple[Any, float]]:
        pass

    @abstractmethod
    async def _write(self, key: str, value: Any, stored_at: float) -> None:
        pass

    @abstractmethod
    async def invalidate(self, key: str) -> None:
        pass


class MemoryTTLCache(TTLCache):
    def __init__(self, ttl: float, max_stale: Optional[float] = None, clock: Clock = time.time):
        super().__init__(ttl, max_stale, clock)
        self._entries: Dict[str, Tuple[Any, float]] = {}

    async def _read(self, key: str) -> Optional[Tuple[Any, float]]:
        return self._entries.get(key)

    async def _write(self, key: str, value: Any, stored_at: float) -> None:
        self._entries[key] = (value, stored_at)

    async def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)


class RedisTTLCache(TTLCache):
    """
    Redis-backed cache shared between service replicas. Values must be
    JSON-serialisable; the redis key itself expires after `max_stale`.
    """

    def __init__(
        self,
        client: redis.Redis,
        namespace: str,
        ttl: float,
        max_stale: Optional[float] = None,
        clock: Clock = time.time,
    ):
        super().__init__(ttl, max_stale, clock)
        self._client = client
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def _read(self, key: str) -> Optional[Tuple[Any, float]]:
        raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
            return payload["value"], float(payload["stored_at"])
        except (ValueError, KeyError, TypeError):
            log.warning("cache.redis.corrupt_entry key=%s", self._key(key))
            return None

    async def _write(self, key: str, value: Any, stored_at: float) -> None:
        payload = json.dumps({"value": value, "stored_at": stored_at})
        await self._client.set(self._key(key), payload, ex=max(1, int(self.max_stale)))

    async def invalidate(self, key: str) -> None:
        await self._client.delete(self._key(key))
