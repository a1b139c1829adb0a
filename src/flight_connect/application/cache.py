"""
Result Cache - cache de resultados por critérios com TTL heurístico
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain.exceptions import CacheFailure
from ..domain.models import Itinerary, SearchCriteria
from ..domain.validation import utc_now
from .interfaces import CacheBackendInterface

logger = logging.getLogger(__name__)


class TtlPolicy(BaseModel):
    """Regras de expiração avaliadas no momento da escrita"""
    model_config = ConfigDict(frozen=True)

    popular_threshold: int = Field(default=100, ge=1)
    popular_ttl: int = Field(default=3600, ge=1)
    near_term_window: timedelta = Field(default=timedelta(hours=24))
    near_term_ttl: int = Field(default=300, ge=1)
    default_ttl: int = Field(default=600, ge=1)


DEFAULT_TTL_POLICY = TtlPolicy()


def select_ttl(
    result_count: int,
    departure_date: datetime,
    now: Optional[datetime] = None,
    policy: TtlPolicy = DEFAULT_TTL_POLICY,
) -> int:
    """TTL em segundos; a primeira regra que casar vence"""
    # 1. Rota popular / alto volume
    if result_count >= policy.popular_threshold:
        return policy.popular_ttl
    # 2. Partida nas próximas 24h: inventário volátil
    now = now or utc_now()
    if departure_date - now <= policy.near_term_window:
        return policy.near_term_ttl
    # 3. Padrão
    return policy.default_ttl


class CachedSearch(BaseModel):
    """Snapshot serializado de um resultado"""
    itineraries: List[Itinerary]
    written_at: datetime
    ttl_seconds: int


class ResultCache:
    """Cache de itinerários indexado por SearchCriteria.cache_key()"""

    def __init__(
        self,
        backend: CacheBackendInterface,
        policy: TtlPolicy = DEFAULT_TTL_POLICY,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._backend = backend
        self._policy = policy
        self._clock = clock

    @staticmethod
    def key_for(criteria: SearchCriteria, max_connections: int = 0) -> str:
        if max_connections == 0:
            return f"flights:{criteria.cache_key()}"
        return f"itineraries:{max_connections}:{criteria.cache_key()}"

    async def get(self, criteria: SearchCriteria, max_connections: int = 0) -> Optional[List[Itinerary]]:
        """Itinerários em cache, ou None (falhas contam como miss)"""
        key = self.key_for(criteria, max_connections)
        try:
            raw = await self._backend.get(key)
        except Exception as exc:
            logger.warning("%s", CacheFailure("get", key, str(exc)))
            return None

        if raw is None:
            logger.debug("Cache MISS: %s", key)
            return None

        try:
            entry = CachedSearch.model_validate_json(raw)
        except ValueError as exc:
            logger.warning("%s", CacheFailure("decode", key, str(exc)))
            return None

        logger.debug("Cache HIT: %s (%d itineraries)", key, len(entry.itineraries))
        return entry.itineraries

    async def put(
        self,
        criteria: SearchCriteria,
        itineraries: List[Itinerary],
        max_connections: int = 0,
    ) -> Optional[int]:
        """Escrita advisory: retorna o TTL usado, ou None se falhou"""
        key = self.key_for(criteria, max_connections)
        now = self._clock()
        ttl = select_ttl(len(itineraries), criteria.departure_date, now=now, policy=self._policy)

        try:
            payload = CachedSearch(itineraries=itineraries, written_at=now, ttl_seconds=ttl)
            await self._backend.put(key, payload.model_dump_json().encode("utf-8"), ttl)
        except Exception as exc:
            logger.warning("%s", CacheFailure("put", key, str(exc)))
            return None

        logger.debug("Cache SET: %s (TTL=%ds)", key, ttl)
        return ttl

    async def invalidate(self, criteria: SearchCriteria, max_connections: Optional[int] = None) -> int:
        """Remove entradas dos critérios; sem max_connections remove todas as profundidades"""
        depths = range(3) if max_connections is None else [max_connections]
        removed = 0
        for depth in depths:
            key = self.key_for(criteria, depth)
            try:
                if await self._backend.delete(key):
                    removed += 1
            except Exception as exc:
                logger.warning("%s", CacheFailure("delete", key, str(exc)))
        return removed

    async def clear(self) -> int:
        try:
            return await self._backend.clear()
        except Exception as exc:
            logger.warning("%s", CacheFailure("clear", "*", str(exc)))
            return 0
