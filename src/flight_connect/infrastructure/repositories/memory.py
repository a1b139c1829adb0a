"""
Repositórios em memória carregáveis de um documento JSON
"""
import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field

from ...application.interfaces import FlightRepositoryInterface, SeatAvailabilityRepositoryInterface
from ...domain.models import Flight, SeatAvailability, SearchCriteria

logger = logging.getLogger(__name__)


class FlightDataset(BaseModel):
    """Formato do arquivo: {"flights": [...], "seats": [...]}"""
    flights: List[Flight] = Field(default_factory=list)
    seats: List[SeatAvailability] = Field(default_factory=list)


class InMemoryFlightRepository(FlightRepositoryInterface):
    """Voos indexados por id; cada consulta devolve cópias independentes"""

    def __init__(self, flights: Iterable[Flight] = ()):
        self._flights: Dict[str, Flight] = {}
        for flight in flights:
            self.add(flight)

    def add(self, flight: Flight) -> None:
        self._flights[flight.flight_id] = flight

    def __len__(self) -> int:
        return len(self._flights)

    def _select(self, predicate) -> List[Flight]:
        matches = [flight for flight in self._flights.values() if predicate(flight)]
        matches.sort(key=lambda x: (x.departure_time, x.flight_id))
        return [flight.model_copy(deep=True) for flight in matches]

    async def find_by_criteria(self, criteria: SearchCriteria) -> List[Flight]:
        day = criteria.departure_date.date()
        return self._select(
            lambda f: f.origin == criteria.origin
            and f.destination == criteria.destination
            and f.departure_time.date() == day
        )

    async def find_by_route(self, origin: str, destination: Optional[str] = None) -> List[Flight]:
        return self._select(
            lambda f: f.origin == origin and (destination is None or f.destination == destination)
        )

    async def find_by_id(self, flight_id: str) -> Optional[Flight]:
        flight = self._flights.get(flight_id)
        return flight.model_copy(deep=True) if flight else None


class InMemorySeatAvailabilityRepository(SeatAvailabilityRepositoryInterface):
    """Registros de assentos agrupados por voo"""

    def __init__(self, records: Iterable[SeatAvailability] = ()):
        self._records: Dict[str, List[SeatAvailability]] = defaultdict(list)
        for record in records:
            self._records[record.flight_id].append(record)

    async def find_by_flight_ids(self, flight_ids: Sequence[str]) -> Dict[str, List[SeatAvailability]]:
        return {
            flight_id: [record.model_copy() for record in self._records[flight_id]]
            for flight_id in flight_ids
            if flight_id in self._records
        }


def load_repositories(
    path: Union[str, Path],
) -> Tuple[InMemoryFlightRepository, InMemorySeatAvailabilityRepository]:
    """Carrega e valida o arquivo de dados"""
    dataset = FlightDataset.model_validate_json(Path(path).read_text(encoding="utf-8"))
    logger.info(
        "Loaded %d flights and %d seat records from %s",
        len(dataset.flights), len(dataset.seats), path,
    )
    return (
        InMemoryFlightRepository(dataset.flights),
        InMemorySeatAvailabilityRepository(dataset.seats),
    )
