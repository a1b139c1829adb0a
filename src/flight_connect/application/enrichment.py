"""
Enrichment Client - aumento best-effort com dados de terceiros
"""
import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from ..domain.exceptions import EnrichmentFailure
from ..domain.models import Flight, Itinerary, PartialFlightUpdate
from .connections import ConnectionWindow
from .interfaces import EnrichmentProviderInterface
from .resilience import AsyncTokenBucket, RetryPolicy

logger = logging.getLogger(__name__)


class EnrichmentClient:
    """
    Enriquece voos em lotes, um task por voo.

    Cada chamada passa pelo rate limiter compartilhado e pela política de retry;
    um voo que não pode ser enriquecido volta inalterado.
    """

    DEFAULT_BATCH_SIZE = 50

    def __init__(
        self,
        provider: EnrichmentProviderInterface,
        rate_limiter: Optional[AsyncTokenBucket] = None,
        retry_policy: Optional[RetryPolicy] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_concurrency: int = 10,
        timeout: float = 10.0,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._provider = provider
        self._rate_limiter = rate_limiter
        self._retry = retry_policy or RetryPolicy()
        self._batch_size = batch_size
        self._max_concurrency = max_concurrency
        self._timeout = timeout

    @property
    def provider_name(self) -> str:
        return getattr(self._provider, "name", self._provider.__class__.__name__)

    async def enrich(self, flights: Sequence[Flight]) -> List[Flight]:
        """Mesmo tamanho e ordem da entrada"""
        if not flights:
            return []

        semaphore = asyncio.Semaphore(self._max_concurrency)
        enriched: List[Flight] = []

        for start in range(0, len(flights), self._batch_size):
            batch = flights[start:start + self._batch_size]
            results = await asyncio.gather(
                *(self._enrich_one(flight, semaphore) for flight in batch)
            )
            enriched.extend(results)

        changed = sum(1 for before, after in zip(flights, enriched) if before != after)
        logger.info(
            "Enriched %d of %d flights via %s", changed, len(flights), self.provider_name
        )
        return enriched

    async def enrich_itineraries(
        self,
        itineraries: Sequence[Itinerary],
        window: Optional[ConnectionWindow] = None,
    ) -> List[Itinerary]:
        """
        Enriquece cada leg uma única vez, mesmo se compartilhada entre itinerários.

        Se os horários confirmados tiram alguma conexão da janela, o itinerário
        volta com os horários programados.
        """
        unique: Dict[str, Flight] = {}
        for itinerary in itineraries:
            for leg in itinerary.legs:
                unique.setdefault(leg.flight_id, leg)

        enriched = await self.enrich(list(unique.values()))
        by_id = {flight.flight_id: flight for flight in enriched}

        rebuilt: List[Itinerary] = []
        for itinerary in itineraries:
            try:
                candidate = Itinerary(legs=[by_id[leg.flight_id] for leg in itinerary.legs])
            except ValueError as exc:
                logger.warning(
                    "Confirmed times break itinerary %s; keeping scheduled times: %s",
                    itinerary.route_summary, exc,
                )
                rebuilt.append(itinerary)
                continue

            if window is not None and not all(window.contains(m) for m in candidate.layover_minutes):
                logger.warning(
                    "Confirmed layovers %s of itinerary %s fall outside %d-%d minutes; keeping scheduled times",
                    candidate.layover_minutes, itinerary.route_summary,
                    window.min_minutes, window.max_minutes,
                )
                rebuilt.append(itinerary)
                continue
            rebuilt.append(candidate)
        return rebuilt

    async def _enrich_one(self, flight: Flight, semaphore: asyncio.Semaphore) -> Flight:
        async with semaphore:
            try:
                update = await self._retry.run(
                    lambda: self._fetch_once(flight),
                    description=f"Enrichment of flight {flight.flight_id}",
                )
            except Exception as exc:
                failure = EnrichmentFailure(flight.flight_id, str(exc) or exc.__class__.__name__)
                logger.warning("Keeping unenriched flight: %s", failure)
                return flight

        if update is None or update.is_empty():
            return flight

        try:
            return flight.apply_update(update)
        except ValueError as exc:
            logger.warning("Rejected update for flight %s: %s", flight.flight_id, exc)
            return flight

    async def _fetch_once(self, flight: Flight) -> Optional[PartialFlightUpdate]:
        if self._rate_limiter is not None:
            await self._rate_limiter.acquire()
        return await asyncio.wait_for(self._provider.fetch(flight), timeout=self._timeout)
