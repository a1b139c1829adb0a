"""
Cache em Redis (redis.asyncio)
"""
import logging
from typing import Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from ...application.interfaces import CacheBackendInterface

logger = logging.getLogger(__name__)


class RedisCache(CacheBackendInterface):
    """
    Backend compartilhado entre processos.

    Erros do Redis propagam; o ResultCache os trata como miss / escrita ignorada.
    """

    def __init__(self, client: redis.Redis, prefix: str = "flight_connect:"):
        self.redis = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "flight_connect:", max_connections: int = 50) -> "RedisCache":
        """Cria o cliente com pool de conexões (respostas em bytes)"""
        pool = ConnectionPool.from_url(
            url,
            max_connections=max_connections,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )
        logger.debug("RedisCache pool created for %s", url)
        return cls(redis.Redis(connection_pool=pool), prefix=prefix)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Optional[bytes]:
        return await self.redis.get(self._key(key))

    async def put(self, key: str, value: bytes, ttl: int) -> None:
        await self.redis.setex(self._key(key), ttl, value)

    async def delete(self, key: str) -> bool:
        return await self.redis.delete(self._key(key)) > 0

    async def clear(self) -> int:
        """Remove apenas as chaves do prefixo"""
        cursor = 0
        deleted = 0
        while True:
            cursor, keys = await self.redis.scan(cursor, match=f"{self.prefix}*", count=100)
            if keys:
                deleted += await self.redis.delete(*keys)
            if cursor == 0:
                break
        logger.info("Deleted %d keys matching %s*", deleted, self.prefix)
        return deleted

    async def close(self) -> None:
        await self.redis.aclose()
