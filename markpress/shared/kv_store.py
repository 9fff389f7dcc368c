"""Key-value store abstraction and its Redis implementation.

Services see the store as a flat mapping from string keys to JSON values
with get, set, delete and prefix scans. There are no transactions: each
call touches a single key, except prefix scans which read many.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any
from typing import List
from typing import Optional
from typing import Tuple

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError

from markpress.services.exceptions import StoreError
from markpress.shared.config import Settings

logger = logging.getLogger(__name__)

_GLOB_SPECIAL = "\\*?[]"


class KVStore(ABC):
    """Async key-value store holding JSON-compatible values."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the value stored under key, or None."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Deleting a missing key is not an error."""

    @abstractmethod
    async def scan_prefix(self, prefix: str) -> List[Tuple[str, Any]]:
        """Return (key, value) pairs for every key starting with prefix.

        Pairs come back ordered by key so repeated scans of an unchanged
        store see the same order.
        """

    async def get_by_prefix(self, prefix: str) -> List[Any]:
        """Return the values of every key starting with prefix."""
        return [value for _, value in await self.scan_prefix(prefix)]

    async def ping(self) -> bool:
        """Check that the store is reachable."""
        return True

    async def close(self) -> None:
        """Release any connections held by the store."""


def create_redis_client(settings: Settings) -> Redis:
    """Create Redis client with proper configuration."""
    pool = redis.ConnectionPool.from_url(
        settings.effective_redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
        retry_on_timeout=True,
        socket_keepalive=True,
    )
    return Redis(connection_pool=pool)


def _escape_glob(text: str) -> str:
    return "".join(f"\\{ch}" if ch in _GLOB_SPECIAL else ch for ch in text)


class RedisKVStore(KVStore):
    """KVStore backed by Redis strings holding JSON text."""

    def __init__(self, client: Redis, namespace: str = "", scan_count: int = 500):
        self.client = client
        self.namespace = f"{namespace}:" if namespace else ""
        self.scan_count = scan_count

    @classmethod
    def from_settings(cls, settings: Settings) -> RedisKVStore:
        return cls(create_redis_client(settings), namespace=settings.store_namespace)

    def _make_key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def _strip_key(self, key: str) -> str:
        return key[len(self.namespace):]

    def _decode(self, key: str, raw: Optional[str]) -> Optional[Any]:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to deserialize stored value for key: {key}")
            raise StoreError("decode", key, e) from e

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.client.get(self._make_key(key))
        except RedisError as e:
            raise StoreError("get", key, e) from e
        return self._decode(key, raw)

    async def set(self, key: str, value: Any) -> None:
        try:
            serialized_value = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StoreError("encode", key, e) from e

        try:
            await self.client.set(self._make_key(key), serialized_value)
        except RedisError as e:
            raise StoreError("set", key, e) from e

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(self._make_key(key))
        except RedisError as e:
            raise StoreError("delete", key, e) from e

    async def scan_prefix(self, prefix: str) -> List[Tuple[str, Any]]:
        pattern = f"{_escape_glob(self._make_key(prefix))}*"
        try:
            keys = set()
            async for key in self.client.scan_iter(match=pattern, count=self.scan_count):
                keys.add(key)
            ordered = sorted(keys)
            raw_values = await self.client.mget(ordered) if ordered else []
        except RedisError as e:
            raise StoreError("scan", prefix, e) from e

        pairs = []
        for full_key, raw in zip(ordered, raw_values):
            key = self._strip_key(full_key)
            # Key removed between SCAN and MGET.
            if raw is None:
                continue
            pairs.append((key, self._decode(key, raw)))
        return pairs

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            return False

    async def close(self) -> None:
        logger.info("Closing Redis connections")
        await self.client.aclose()
