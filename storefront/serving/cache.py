"""
Redis Cache Module

Read cache for catalog listings:
- Connection pooling
- JSON serialization
- Per-kind namespaces invalidated on every write

The cache is optional. When redis is disabled or was never initialized every
operation is a no-op, and redis errors are logged instead of failing the
request.
"""

import json
from typing import Any, Awaitable, Callable, Optional

import structlog
from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from storefront.config import get_settings

logger = structlog.get_logger(__name__)

# Global Redis connection
_redis_pool: Optional[ConnectionPool] = None
_redis_client: Optional[Redis] = None


async def init_redis() -> Optional[Redis]:
    """Initialize Redis connection pool; returns None when caching is disabled"""
    global _redis_pool, _redis_client

    if _redis_client is not None:
        return _redis_client

    settings = get_settings()
    if not settings.redis.enabled:
        logger.info("Redis cache disabled")
        return None

    _redis_pool = ConnectionPool.from_url(
        settings.redis.get_url(),
        max_connections=settings.redis.max_connections,
        socket_timeout=settings.redis.socket_timeout,
        decode_responses=True,
    )
    client = Redis(connection_pool=_redis_pool)

    try:
        await client.ping()
    except RedisError as e:
        logger.error("Redis connection failed", error=str(e))
        await _redis_pool.disconnect()
        _redis_pool = None
        raise

    _redis_client = client
    logger.info("Redis connection established")
    return _redis_client


async def close_redis() -> None:
    """Close Redis connection pool"""
    global _redis_pool, _redis_client

    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None

    if _redis_pool:
        await _redis_pool.disconnect()
        _redis_pool = None

    logger.info("Redis connection closed")


def get_redis() -> Optional[Redis]:
    """Get Redis client instance, or None when the cache is not active"""
    return _redis_client


async def check_redis_health() -> dict:
    client = get_redis()
    if client is None:
        return {"status": "disabled"}
    try:
        await client.ping()
        return {"status": "healthy"}
    except RedisError as e:
        return {"status": "unhealthy", "error": str(e)}


class CacheManager:
    """
    Cache manager with namespace support and automatic key generation.

    Example:
        cache = CacheManager("products")
        await cache.set("list", payload, ttl=300)
        payload = await cache.get("list")
    """

    def __init__(self, namespace: str, default_ttl: Optional[int] = None):
        self.namespace = namespace
        self.default_ttl = default_ttl

    def _key(self, key: str) -> str:
        """Generate namespaced key"""
        return f"{self.namespace}:{key}"

    def _ttl(self, ttl: Optional[int]) -> int:
        return ttl or self.default_ttl or get_settings().redis.default_ttl

    async def get(self, key: str) -> Optional[Any]:
        client = get_redis()
        if client is None:
            return None
        try:
            value = await client.get(self._key(key))
        except RedisError as e:
            logger.warning("Cache read failed", namespace=self.namespace, key=key, error=str(e))
            return None
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        client = get_redis()
        if client is None:
            return False
        try:
            serialized = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.warning("Failed to serialize value for cache", namespace=self.namespace, error=str(e))
            return False
        try:
            await client.setex(self._key(key), self._ttl(ttl), serialized)
        except RedisError as e:
            logger.warning("Cache write failed", namespace=self.namespace, key=key, error=str(e))
            return False
        return True

    async def invalidate_all(self) -> int:
        """Invalidate all keys in namespace"""
        client = get_redis()
        if client is None:
            return 0
        try:
            keys = [key async for key in client.scan_iter(match=f"{self.namespace}:*")]
            if not keys:
                return 0
            return await client.delete(*keys)
        except RedisError as e:
            logger.warning("Cache invalidation failed", namespace=self.namespace, error=str(e))
            return 0

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
    ) -> Any:
        """
        Get from cache or compute and cache.

        Args:
            key: Cache key
            factory: Async function to compute value if not cached
            ttl: Time-to-live

        Returns:
            Cached or computed value
        """
        value = await self.get(key)

        if value is not None:
            return value

        value = await factory()
        await self.set(key, value, ttl)

        return value


async def invalidate(*caches: CacheManager) -> None:
    for cache in caches:
        await cache.invalidate_all()


# Pre-configured cache managers
categories_cache = CacheManager("categories")
products_cache = CacheManager("products")
reviews_cache = CacheManager("reviews")
explore_products_cache = CacheManager("explore-products")
featured_collections_cache = CacheManager("featured-collections")
hero_sliders_cache = CacheManager("hero-sliders")
video_gallery_cache = CacheManager("video-gallery")
