"""
Factory para criar instâncias configuradas dos serviços
"""
from typing import Optional

from .config import Config
from .cache.memory_cache import InMemoryCache
from .cache.redis_cache import RedisCache
from .providers.aviationstack_provider import AviationStackProvider
from ..application.cache import ResultCache
from ..application.connections import ConnectionFinder
from ..application.enrichment import EnrichmentClient
from ..application.interfaces import (
    CacheBackendInterface,
    EnrichmentProviderInterface,
    FlightRepositoryInterface,
    SeatAvailabilityRepositoryInterface,
)
from ..application.services import SearchOrchestrator


class SearchOrchestratorFactory:
    """Factory para criar o orquestrador de busca configurado"""

    @staticmethod
    def create(
        flight_repository: FlightRepositoryInterface,
        seat_repository: SeatAvailabilityRepositoryInterface,
        config: Config = None,
        cache: Optional[CacheBackendInterface] = None,
        provider: Optional[EnrichmentProviderInterface] = None,
    ) -> SearchOrchestrator:
        """Cria uma instância completa do orquestrador"""
        if config is None:
            config = Config()

        # Regras de conexão
        connection_finder = ConnectionFinder(flight_repository, window=config.connection_window())

        # Cache
        if cache is None:
            cache = SearchOrchestratorFactory._create_cache_backend(config)
        result_cache = ResultCache(cache, policy=config.ttl_policy())

        # Enriquecimento
        if provider is None:
            provider = SearchOrchestratorFactory._create_provider(config)
        enrichment_client = SearchOrchestratorFactory._create_enrichment_client(config, provider)

        return SearchOrchestrator(
            flight_repository=flight_repository,
            seat_repository=seat_repository,
            connection_finder=connection_finder,
            enrichment_client=enrichment_client,
            result_cache=result_cache,
            validation_config=config.validation_config(),
        )

    @staticmethod
    def _create_cache_backend(config: Config) -> CacheBackendInterface:
        """Redis quando configurado, memória caso contrário"""
        if config.is_redis_configured():
            return RedisCache.from_url(config.REDIS_URL)
        return InMemoryCache(max_size=config.CACHE_MAX_SIZE)

    @staticmethod
    def _create_provider(config: Config) -> Optional[EnrichmentProviderInterface]:
        if config.is_aviationstack_configured():
            return AviationStackProvider(config)
        return None

    @staticmethod
    def _create_enrichment_client(
        config: Config,
        provider: Optional[EnrichmentProviderInterface],
    ) -> Optional[EnrichmentClient]:
        """Sem provedor não há enriquecimento"""
        if provider is None:
            return None
        return EnrichmentClient(
            provider,
            rate_limiter=config.rate_limiter(),
            retry_policy=config.retry_policy(),
            batch_size=config.ENRICHMENT_BATCH_SIZE,
            max_concurrency=config.MAX_CONCURRENT_REQUESTS,
            timeout=config.ENRICHMENT_TIMEOUT,
        )
