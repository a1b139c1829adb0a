"""
Connection Finder - montagem de itinerários com 0, 1 ou 2 conexões
"""
import logging
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..domain.models import Flight, Itinerary, minutes_between
from ..domain.validation import validate_max_connections
from .interfaces import FlightRepositoryInterface

logger = logging.getLogger(__name__)


class ConnectionWindow(BaseModel):
    """Intervalo permitido entre chegada de uma leg e partida da seguinte"""
    model_config = ConfigDict(frozen=True)

    min_minutes: int = Field(default=45, ge=0)
    max_minutes: int = Field(default=240, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "ConnectionWindow":
        if self.min_minutes > self.max_minutes:
            raise ValueError("min_minutes cannot exceed max_minutes")
        return self

    def contains(self, minutes: int) -> bool:
        return self.min_minutes <= minutes <= self.max_minutes


class ConnectionFinder:
    """Constrói itinerários respeitando continuidade de aeroportos e janela de conexão"""

    def __init__(self, repository: FlightRepositoryInterface, window: Optional[ConnectionWindow] = None):
        self._repository = repository
        self._window = window or ConnectionWindow()

    @property
    def window(self) -> ConnectionWindow:
        return self._window

    def is_valid_connection(self, first: Flight, second: Flight) -> bool:
        if first.destination != second.origin:
            return False
        return self._window.contains(minutes_between(first.arrival_time, second.departure_time))

    async def find(self, origin: str, destination: str, max_connections: int) -> List[Itinerary]:
        """Busca itinerários até max_connections conexões"""
        max_connections = validate_max_connections(max_connections)
        routes: Dict[Tuple[str, Optional[str]], List[Flight]] = {}

        if max_connections == 0:
            direct = await self._lookup(routes, origin, destination)
            return [Itinerary(legs=[flight]) for flight in direct]

        itineraries: List[Itinerary] = []
        first_legs = await self._lookup(routes, origin, None)

        for first_leg in first_legs:
            if first_leg.destination == destination:
                continue
            if max_connections == 1:
                itineraries.extend(await self._single_connections(routes, first_leg, destination))
            else:
                itineraries.extend(await self._double_connections(routes, first_leg, destination))

        logger.debug(
            "Found %d itineraries %s -> %s with up to %d connection(s)",
            len(itineraries), origin, destination, max_connections,
        )
        return itineraries

    async def _single_connections(
        self,
        routes: Dict[Tuple[str, Optional[str]], List[Flight]],
        first_leg: Flight,
        destination: str,
    ) -> List[Itinerary]:
        second_legs = await self._lookup(routes, first_leg.destination, destination)
        return [
            Itinerary(legs=[first_leg, second_leg])
            for second_leg in second_legs
            if self.is_valid_connection(first_leg, second_leg)
        ]

    async def _double_connections(
        self,
        routes: Dict[Tuple[str, Optional[str]], List[Flight]],
        first_leg: Flight,
        destination: str,
    ) -> List[Itinerary]:
        itineraries: List[Itinerary] = []
        second_legs = await self._lookup(routes, first_leg.destination, None)

        for second_leg in second_legs:
            if not self.is_valid_connection(first_leg, second_leg):
                continue

            # Par que já chega ao destino conta como uma conexão
            if second_leg.destination == destination:
                itineraries.append(Itinerary(legs=[first_leg, second_leg]))
                continue

            final_legs = await self._lookup(routes, second_leg.destination, destination)
            for final_leg in final_legs:
                if self.is_valid_connection(second_leg, final_leg):
                    itineraries.append(Itinerary(legs=[first_leg, second_leg, final_leg]))

        return itineraries

    async def _lookup(
        self,
        routes: Dict[Tuple[str, Optional[str]], List[Flight]],
        origin: str,
        destination: Optional[str],
    ) -> List[Flight]:
        """Consulta ao repositório memorizada por busca"""
        key = (origin, destination)
        if key not in routes:
            routes[key] = await self._repository.find_by_route(origin, destination)
        return routes[key]
