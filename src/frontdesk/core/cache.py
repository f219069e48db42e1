"""
Redis utility abstractions for caching operations
"""

import logging
from decimal import Decimal
from typing import Optional, Dict, Any

import redis.asyncio as redis
import orjson
from redis.exceptions import RedisError, ConnectionError

from .config import get_redis_config, RedisConfig

logger = logging.getLogger(__name__)

DOCTOR_DIRECTORY_KEY = "frontdesk:doctors"


def _orjson_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError


class CacheManager:
    """
    Redis cache manager with connection pooling and orjson serialization.
    Every operation degrades to a miss on Redis errors; callers never see them.
    """

    def __init__(self, config: Optional[RedisConfig] = None):
        self.config = config or get_redis_config()
        self._pool: Optional[redis.ConnectionPool] = None
        self._client: Optional[redis.Redis] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize Redis connection pool and client"""
        if self._initialized:
            return

        logger.info(f"Initializing Redis connection to {self.config.host}:{self.config.port}")

        try:
            pool_kwargs = {
                "host": self.config.host,
                "port": self.config.port,
                "db": self.config.db,
                "max_connections": self.config.max_connections,
                "socket_timeout": self.config.socket_timeout,
                "socket_connect_timeout": self.config.socket_connect_timeout,
                "decode_responses": self.config.decode_responses,
                "retry_on_timeout": True,
                "retry_on_error": [ConnectionError],
            }

            if self.config.password:
                pool_kwargs["password"] = self.config.password

            self._pool = redis.ConnectionPool(**pool_kwargs)
            self._client = redis.Redis(connection_pool=self._pool)

            await self._client.ping()
            logger.info("Redis connection established successfully")

            self._initialized = True

        except RedisError as e:
            logger.error(f"Failed to initialize Redis: {e}")
            raise

    async def cleanup(self) -> None:
        """Cleanup Redis connections"""
        if self._pool:
            await self._pool.disconnect()
            self._initialized = False
            logger.info("Redis connections closed")

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def health_check(self) -> Dict[str, Any]:
        """Perform Redis health check"""
        try:
            if not self._initialized:
                return {"status": "error", "message": "Redis not initialized"}

            pong = await self._client.ping()
            if not pong:
                return {"status": "unhealthy", "message": "Ping failed"}

            info = await self._client.info()
            return {
                "status": "healthy",
                "version": info.get("redis_version"),
                "connected_clients": info.get("connected_clients", 0),
            }

        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return {
                "status": "unhealthy",
                "error": str(e)
            }

    # Serialization utilities
    def serialize(self, data: Any) -> bytes:
        """Serialize data using orjson for performance"""
        return orjson.dumps(data, default=_orjson_default)

    def deserialize(self, data: Optional[bytes]) -> Any:
        """Deserialize data using orjson"""
        if data is None:
            return None
        return orjson.loads(data)

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache with automatic deserialization"""
        if not self._initialized:
            return None
        try:
            raw_data = await self._client.get(key)
            return self.deserialize(raw_data) if raw_data else None
        except RedisError as e:
            logger.warning(f"Redis get failed for key {key}: {e}")
            return None
        except orjson.JSONDecodeError as e:
            logger.error(f"Cache payload for key {key} is corrupt: {e}")
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: Optional[int] = None
    ) -> bool:
        """Set value in cache with automatic serialization"""
        if not self._initialized:
            return False
        try:
            ttl = ttl_seconds or self.config.doctor_cache_ttl_seconds
            await self._client.setex(key, ttl, self.serialize(value))
            return True
        except RedisError as e:
            logger.warning(f"Redis set failed for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache"""
        if not self._initialized:
            return False
        try:
            result = await self._client.delete(key)
            return result > 0
        except RedisError as e:
            logger.warning(f"Redis delete failed for key {key}: {e}")
            return False
