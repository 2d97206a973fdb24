"""
Redis record store for high-performance API serving.

Uses redis-py's native asyncio client with a shared connection pool.
Batched reads go through a non-transactional pipeline, so N commands cost
one network exchange. Each round trip is bounded by a deadline.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from redis import asyncio as aioredis
from redis.exceptions import RedisError, ResponseError

from ..core.config import Settings
from .base import FieldMap, RecordStore, StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _per_key(key: str, result: Any, absent: Any) -> Any:
    # A command error inside a pipeline (e.g. WRONGTYPE) only concerns its own key
    if isinstance(result, Exception):
        logger.warning(f"Redis error for key {key}, treating as absent: {result}")
        return absent
    return result or absent


class RedisStore(RecordStore):
    """
    Redis-backed record store.

    Records are Redis hashes, indexes are Redis sets, legacy records are
    plain string values. The client is constructed explicitly and shared
    for the process lifetime.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        round_trip_timeout: float | None = 2.0,
        scan_batch_size: int = 100,
    ):
        """
        Initialize the store around an existing client.

        Args:
            client: redis.asyncio client (decode_responses=True)
            round_trip_timeout: Deadline per round trip in seconds (None disables)
            scan_batch_size: COUNT hint for each SCAN page
        """
        super().__init__()
        self._redis = client
        self._timeout = round_trip_timeout
        self._scan_batch_size = scan_batch_size

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisStore":
        """Build a pooled client from application settings."""
        pool = aioredis.ConnectionPool.from_url(
            settings.store_url,
            max_connections=settings.redis_pool_size,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_timeout,
            decode_responses=True,
        )
        client = aioredis.Redis(connection_pool=pool)
        logger.info(
            f"Redis store configured (host={settings.redis_host}, db={settings.redis_db}, "
            f"pool_size={settings.redis_pool_size})"
        )
        return cls(
            client,
            round_trip_timeout=settings.store_round_trip_timeout,
            scan_batch_size=settings.scan_batch_size,
        )

    async def close(self) -> None:
        """Close the client and its pool. Call this at app shutdown."""
        await self._redis.aclose()
        logger.info("Redis store closed")

    async def _round_trip(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        """Run one network exchange under the deadline, translating failures."""
        self._record_round_trip()
        try:
            if self._timeout is None:
                return await call()
            return await asyncio.wait_for(call(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Redis {operation} timed out after {self._timeout}s")
            raise StoreUnavailableError(f"Store {operation} timed out", operation=operation) from e
        except (RedisError, OSError) as e:
            logger.error(f"Redis {operation} failed: {e}")
            raise StoreUnavailableError(f"Store {operation} failed: {e}", operation=operation) from e

    async def _pipeline(
        self,
        operation: str,
        queue: Callable[[Any], None],
        raise_on_error: bool = True,
    ) -> list[Any]:
        async def run() -> list[Any]:
            async with self._redis.pipeline(transaction=False) as pipe:
                queue(pipe)
                return await pipe.execute(raise_on_error=raise_on_error)

        return await self._round_trip(operation, run)

    # =========================================================================
    # Field-map Operations
    # =========================================================================

    async def get_field_map(self, key: str) -> FieldMap:
        async def run() -> Any:
            try:
                return await self._redis.hgetall(key)
            except ResponseError as e:
                return e

        return _per_key(key, await self._round_trip("HGETALL", run), {})

    async def get_field_maps(self, keys: Sequence[str]) -> list[FieldMap]:
        if not keys:
            return []

        def queue(pipe: Any) -> None:
            for key in keys:
                pipe.hgetall(key)

        results = await self._pipeline("pipelined HGETALL", queue, raise_on_error=False)
        return [_per_key(key, result, {}) for key, result in zip(keys, results)]

    async def get_field_map_with_sets(
        self,
        key: str,
        index_keys: Sequence[str],
    ) -> tuple[FieldMap, dict[str, list[str]]]:
        def queue(pipe: Any) -> None:
            pipe.hgetall(key)
            for index_key in index_keys:
                pipe.smembers(index_key)

        results = await self._pipeline("pipelined HGETALL+SMEMBERS", queue, raise_on_error=False)
        field_map = _per_key(key, results[0], {})
        members = {
            index_key: list(_per_key(index_key, result, []))
            for index_key, result in zip(index_keys, results[1:])
        }
        return field_map, members

    # =========================================================================
    # Set Operations
    # =========================================================================

    async def get_set_members(self, index_key: str) -> list[str]:
        members = await self._round_trip("SMEMBERS", lambda: self._redis.smembers(index_key))
        return list(members or ())

    async def get_set_members_many(self, index_keys: Sequence[str]) -> dict[str, list[str]]:
        if not index_keys:
            return {}

        def queue(pipe: Any) -> None:
            for index_key in index_keys:
                pipe.smembers(index_key)

        results = await self._pipeline("pipelined SMEMBERS", queue)
        return {
            index_key: list(result or ())
            for index_key, result in zip(index_keys, results)
        }

    # =========================================================================
    # Scalar Operations
    # =========================================================================

    async def get_scalar(self, key: str) -> str | None:
        async def run() -> Any:
            try:
                return await self._redis.get(key)
            except ResponseError as e:
                return e

        return _per_key(key, await self._round_trip("GET", run), None)

    async def get_scalars(self, keys: Sequence[str]) -> list[str | None]:
        if not keys:
            return []

        def queue(pipe: Any) -> None:
            for key in keys:
                pipe.get(key)

        results = await self._pipeline("pipelined GET", queue, raise_on_error=False)
        return [_per_key(key, result, None) for key, result in zip(keys, results)]

    # =========================================================================
    # Key Enumeration and Liveness
    # =========================================================================

    async def scan_keys(self, pattern: str) -> list[str]:
        """Use SCAN instead of KEYS so large keyspaces never block the server."""
        keys: list[str] = []
        cursor = 0
        while True:
            cursor, batch = await self._round_trip(
                "SCAN",
                lambda c=cursor: self._redis.scan(cursor=c, match=pattern, count=self._scan_batch_size),
            )
            keys.extend(batch)
            if int(cursor) == 0:
                break
        return keys

    async def ping(self) -> bool:
        try:
            return bool(await self._round_trip("PING", self._redis.ping))
        except StoreUnavailableError as e:
            logger.error(f"Redis health check failed: {e}")
            return False
