"""
Cache em memória com TTL e descarte LRU
"""
import logging
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from ...application.interfaces import CacheBackendInterface

logger = logging.getLogger(__name__)


class InMemoryCache(CacheBackendInterface):
    """
    Backend de processo único para desenvolvimento, CLI e testes.
    Entradas expiram pelo TTL; acima de max_size a menos usada sai primeiro.
    """

    def __init__(self, max_size: int = 1000, clock: Callable[[], float] = time.monotonic):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._store: "OrderedDict[str, Tuple[bytes, float]]" = OrderedDict()
        self.max_size = max_size
        self._clock = clock

    def __len__(self) -> int:
        self._evict_expired()
        return len(self._store)

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._store.items() if expires_at <= now]
        for key in expired:
            self._store.pop(key, None)

    async def get(self, key: str) -> Optional[bytes]:
        self._evict_expired()
        item = self._store.get(key)
        if item is None:
            return None
        self._store.move_to_end(key)
        return item[0]

    async def put(self, key: str, value: bytes, ttl: int) -> None:
        self._evict_expired()
        if len(self._store) >= self.max_size and key not in self._store:
            evicted, _ = self._store.popitem(last=False)
            logger.debug("Cache EVICT: %s", evicted)
        self._store[key] = (value, self._clock() + ttl)
        self._store.move_to_end(key)

    async def delete(self, key: str) -> bool:
        self._evict_expired()
        return self._store.pop(key, None) is not None

    async def clear(self) -> int:
        self._evict_expired()
        count = len(self._store)
        self._store.clear()
        return count
