"""
Namespaced JSON cache on top of redis.asyncio.
"""

import hashlib
import json
import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


def md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


class CacheClient:
    """
    Small key/value cache used for geocoding results and listing views.

    Values are JSON-serialized; keys are prefixed with ``namespace``.
    """

    def __init__(self, redis_client: redis.Redis, namespace: str = "listing_sync", default_ttl: int = 3600):
        self.redis = redis_client
        self.namespace = namespace
        self.default_ttl = default_ttl
        logger.info(f"Cache client initialized: namespace={namespace}, default_ttl={default_ttl}s")

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "CacheClient":
        return cls(redis.from_url(url, decode_responses=True), **kwargs)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss or an unreachable cache."""
        try:
            raw = await self.redis.get(self._key(key))
        except RedisError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            await self.redis.set(
                self._key(key), json.dumps(value, default=str), ex=ttl or self.default_ttl
            )
        except RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False
        return True

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self.redis.delete(*(self._key(key) for key in keys))

    async def ping(self) -> bool:
        return await self.redis.ping()

    async def close(self) -> None:
        await self.redis.aclose()
