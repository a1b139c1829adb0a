"""
Application Services - Casos de uso e orquestração da busca
"""
import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional, Set, TypeVar

from ..domain.exceptions import NotFoundError, RepositoryFailure
from ..domain.models import Flight, Itinerary, SearchCriteria, SearchResult
from ..domain.validation import ValidationConfig, utc_now, validate_max_connections
from .cache import ResultCache
from .connections import ConnectionFinder
from .enrichment import EnrichmentClient
from .interfaces import FlightRepositoryInterface, SeatAvailabilityRepositoryInterface
from .seats import attach_seat_availability, filter_by_seat_class

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SearchState(str, Enum):
    VALIDATING = "VALIDATING"
    CACHE_CHECK = "CACHE_CHECK"
    CACHE_HIT = "CACHE_HIT"
    CACHE_MISS = "CACHE_MISS"
    REPOSITORY_LOOKUP = "REPOSITORY_LOOKUP"
    SEAT_ATTACH = "SEAT_ATTACH"
    CLASS_FILTER = "CLASS_FILTER"
    ENRICH = "ENRICH"
    CACHE_WRITE = "CACHE_WRITE"
    DONE = "DONE"
    FAILED = "FAILED"


class SearchOrchestrator:
    """
    Search Orchestrator - um pipeline por requisição

    Valida os critérios, consulta o cache e, em caso de miss, executa
    repositório → assentos → filtro de classe → enriquecimento, agendando
    a escrita no cache sem bloquear a resposta.
    """

    def __init__(
        self,
        flight_repository: FlightRepositoryInterface,
        seat_repository: SeatAvailabilityRepositoryInterface,
        connection_finder: Optional[ConnectionFinder] = None,
        enrichment_client: Optional[EnrichmentClient] = None,
        result_cache: Optional[ResultCache] = None,
        validation_config: Optional[ValidationConfig] = None,
    ):
        self.flight_repository = flight_repository
        self.seat_repository = seat_repository
        self.connection_finder = connection_finder or ConnectionFinder(flight_repository)
        self.enrichment_client = enrichment_client
        self.result_cache = result_cache
        self.validation_config = validation_config
        self._pending_writes: Set[asyncio.Task] = set()

    async def search(
        self,
        origin: Optional[str],
        destination: Optional[str],
        departure_date: Any,
        return_date: Any = None,
        seat_class: Any = None,
        max_connections: int = 0,
        airline_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SearchResult:
        """Busca itinerários ordenados por partida; levanta erros tipados"""
        self._transition(SearchState.VALIDATING)
        try:
            criteria = SearchCriteria.build(
                origin, destination, departure_date, return_date, seat_class,
                config=self.validation_config, now=now,
            )
            max_connections = validate_max_connections(max_connections)
        except Exception:
            self._transition(SearchState.FAILED)
            raise

        cache_key = criteria.cache_key()
        airline_id = airline_id.strip().upper() if airline_id else None

        self._transition(SearchState.CACHE_CHECK, cache_key)
        cached = await self.result_cache.get(criteria, max_connections) if self.result_cache else None
        if cached is not None:
            self._transition(SearchState.CACHE_HIT, cache_key)
            itineraries = self._filter_by_airline(cached, airline_id)
            if not itineraries:
                self._transition(SearchState.FAILED, cache_key)
                raise NotFoundError(self._not_found_message(criteria, airline_id), cache_key)
            self._transition(SearchState.DONE, cache_key)
            return self._build_result(itineraries, criteria, max_connections, from_cache=True)

        self._transition(SearchState.CACHE_MISS, cache_key)
        try:
            itineraries = await self._run_pipeline(criteria, max_connections, airline_id)
        except Exception:
            self._transition(SearchState.FAILED, cache_key)
            raise

        # Resultado filtrado por companhia é parcial e não vai para o cache
        if self.result_cache is not None and airline_id is None:
            self._transition(SearchState.CACHE_WRITE, cache_key)
            self._schedule_cache_write(criteria, itineraries, max_connections)

        self._transition(SearchState.DONE, cache_key)
        return self._build_result(itineraries, criteria, max_connections, from_cache=False)

    async def get_flight_details(self, flight_id: str) -> Flight:
        """Voo com assentos anexados e dados confirmados, se disponíveis"""
        flight = await self._call_repository(
            self.flight_repository.find_by_id(flight_id),
            "FlightRepository", {"flight_id": flight_id},
        )
        if flight is None:
            raise NotFoundError(f"Flight not found: {flight_id}")

        await self._call_repository(
            attach_seat_availability([flight], self.seat_repository),
            "SeatAvailabilityRepository", {"flight_id": flight_id},
        )
        if self.enrichment_client is not None:
            flight = (await self.enrichment_client.enrich([flight]))[0]
        return flight

    async def invalidate_cache(
        self,
        origin: str,
        destination: str,
        departure_date: Any,
        return_date: Any = None,
        seat_class: Any = None,
        max_connections: Optional[int] = None,
    ) -> int:
        """Remove entradas em cache dos critérios informados"""
        if self.result_cache is None:
            return 0
        criteria = SearchCriteria.build(
            origin, destination, departure_date, return_date, seat_class,
            config=self.validation_config,
        )
        removed = await self.result_cache.invalidate(criteria, max_connections)
        logger.info("Invalidated %d cache entries for %s", removed, criteria.cache_key())
        return removed

    async def wait_for_pending_writes(self) -> None:
        """Aguarda escritas de cache em andamento"""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)

    async def _run_pipeline(
        self,
        criteria: SearchCriteria,
        max_connections: int,
        airline_id: Optional[str],
    ) -> List[Itinerary]:
        cache_key = criteria.cache_key()
        context = {"cache_key": cache_key, "max_connections": max_connections}

        self._transition(SearchState.REPOSITORY_LOOKUP, cache_key)
        itineraries = await self._call_repository(
            self._lookup(criteria, max_connections), "FlightRepository", context
        )
        itineraries = self._filter_by_airline(itineraries, airline_id)
        if not itineraries:
            raise NotFoundError(self._not_found_message(criteria, airline_id), cache_key)

        self._transition(SearchState.SEAT_ATTACH, cache_key)
        legs = [leg for itinerary in itineraries for leg in itinerary.legs]
        await self._call_repository(
            attach_seat_availability(legs, self.seat_repository),
            "SeatAvailabilityRepository", context,
        )

        self._transition(SearchState.CLASS_FILTER, cache_key)
        itineraries = filter_by_seat_class(itineraries, criteria.seat_class)
        if not itineraries:
            raise NotFoundError(self._not_found_message(criteria, airline_id), cache_key)

        if self.enrichment_client is not None:
            self._transition(SearchState.ENRICH, cache_key)
            itineraries = await self.enrichment_client.enrich_itineraries(
                itineraries, window=self.connection_finder.window
            )

        return sorted(itineraries, key=lambda x: (x.departure_time, x.arrival_time))

    async def _lookup(self, criteria: SearchCriteria, max_connections: int) -> List[Itinerary]:
        if max_connections == 0:
            flights = await self.flight_repository.find_by_criteria(criteria)
            return [Itinerary(legs=[flight]) for flight in flights]

        found = await self.connection_finder.find(
            criteria.origin, criteria.destination, max_connections
        )
        # find_by_route ignora a data: mantém só o dia pedido
        day = criteria.departure_date.date()
        return [itinerary for itinerary in found if itinerary.departure_time.date() == day]

    async def _call_repository(self, call: Awaitable[T], collaborator: str, context: Dict[str, Any]) -> T:
        try:
            return await call
        except Exception as exc:
            logger.error("%s failed (%s): %s", collaborator, context, exc)
            raise RepositoryFailure(collaborator, context, str(exc)) from exc

    def _schedule_cache_write(
        self,
        criteria: SearchCriteria,
        itineraries: List[Itinerary],
        max_connections: int,
    ) -> None:
        task = asyncio.create_task(self.result_cache.put(criteria, itineraries, max_connections))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    @staticmethod
    def _filter_by_airline(itineraries: List[Itinerary], airline_id: Optional[str]) -> List[Itinerary]:
        if not airline_id:
            return list(itineraries)
        return [
            itinerary for itinerary in itineraries
            if all(leg.airline_id.upper() == airline_id for leg in itinerary.legs)
        ]

    @staticmethod
    def _not_found_message(criteria: SearchCriteria, airline_id: Optional[str]) -> str:
        message = (
            f"No flights found from {criteria.origin} to {criteria.destination} "
            f"on {criteria.departure_date.date().isoformat()}"
        )
        if criteria.seat_class:
            message += f" in {criteria.seat_class}"
        if airline_id:
            message += f" operated by {airline_id}"
        return message

    @staticmethod
    def _build_result(
        itineraries: List[Itinerary],
        criteria: SearchCriteria,
        max_connections: int,
        from_cache: bool,
    ) -> SearchResult:
        return SearchResult(
            itineraries=itineraries,
            search_criteria=criteria,
            max_connections=max_connections,
            search_timestamp=utc_now(),
            total_results=len(itineraries),
            from_cache=from_cache,
        )

    @staticmethod
    def _transition(state: SearchState, cache_key: Optional[str] = None) -> None:
        logger.debug("Search state -> %s [%s]", state.value, cache_key or "-")
