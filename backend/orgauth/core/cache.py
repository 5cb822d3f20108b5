"""
Redis-backed read-through cache.

The cache only accelerates reads; MongoDB stays authoritative. Every call
tolerates Redis being unreachable: failures are logged and treated as a
miss (reads) or a no-op (writes and deletes), so a cache outage never fails
a request.

Usage:
    value = await cache.get_json("user:123")        # dict/list or None
    await cache.set_json("user:123", data, ttl=300)
    await cache.delete("user:123", "users:all")
"""
import json
import logging
from redis import asyncio as aioredis
from orgauth.core.config import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD, REDIS_DB, CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)


class RedisCache:
    def __init__(self, client=None, default_ttl: int = CACHE_TTL_SECONDS):
        self.default_ttl = default_ttl
        self.client = client if client is not None else aioredis.Redis(
            host=REDIS_HOST,
            port=REDIS_PORT,
            password=REDIS_PASSWORD,
            db=REDIS_DB,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )

    async def get_json(self, key: str):
        """Return the decoded value stored at key, or None on miss or failure."""
        try:
            raw = await self.client.get(key)
        except Exception as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Cache entry {key} is not valid JSON: {e}")
            return None

    async def set_json(self, key: str, value, ttl: int = None) -> bool:
        try:
            payload = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.warning(f"Cache value for {key} is not serializable: {e}")
            return False
        try:
            await self.client.set(key, payload, ex=ttl or self.default_ttl)
            return True
        except Exception as e:
            logger.warning(f"Cache set failed for {key}: {e}")
            return False

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self.client.delete(*keys)
        except Exception as e:
            logger.warning(f"Cache delete failed for {', '.join(keys)}: {e}")

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except Exception:
            return False

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except Exception as e:
            logger.warning(f"Cache close failed: {e}")


cache = RedisCache()
