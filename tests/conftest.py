"""
Fixtures e dublês compartilhados pelos testes
"""
import asyncio
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

import pytest

from flight_connect.application.interfaces import (
    CacheBackendInterface,
    FlightRepositoryInterface,
    SeatAvailabilityRepositoryInterface,
)
from flight_connect.domain.models import Flight, PartialFlightUpdate, SeatAvailability, SearchCriteria
from flight_connect.infrastructure.repositories.memory import (
    InMemoryFlightRepository,
    InMemorySeatAvailabilityRepository,
)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


def make_flight(
    flight_id: str,
    origin: str,
    destination: str,
    departure: datetime,
    arrival: datetime,
    airline_id: str = "AA",
    flight_number: Optional[str] = None,
    seats: Optional[Dict[str, int]] = None,
) -> Flight:
    return Flight(
        flight_id=flight_id,
        airline_id=airline_id,
        flight_number=flight_number,
        origin=origin,
        destination=destination,
        departure_time=departure,
        arrival_time=arrival,
        seat_availability=seats or {},
    )


class RecordingFlightRepository(FlightRepositoryInterface):
    """Repositório em memória que registra as chamadas e pode falhar sob demanda"""

    def __init__(self, flights: Iterable[Flight] = (), error: Optional[Exception] = None):
        self._inner = InMemoryFlightRepository(flights)
        self.error = error
        self.calls: List[tuple] = []

    async def find_by_criteria(self, criteria: SearchCriteria) -> List[Flight]:
        self.calls.append(("find_by_criteria", criteria.origin, criteria.destination))
        if self.error:
            raise self.error
        return await self._inner.find_by_criteria(criteria)

    async def find_by_route(self, origin: str, destination: Optional[str] = None) -> List[Flight]:
        self.calls.append(("find_by_route", origin, destination))
        if self.error:
            raise self.error
        return await self._inner.find_by_route(origin, destination)

    async def find_by_id(self, flight_id: str) -> Optional[Flight]:
        self.calls.append(("find_by_id", flight_id))
        if self.error:
            raise self.error
        return await self._inner.find_by_id(flight_id)


class RecordingSeatRepository(SeatAvailabilityRepositoryInterface):
    def __init__(self, records: Iterable[SeatAvailability] = (), error: Optional[Exception] = None):
        self._inner = InMemorySeatAvailabilityRepository(records)
        self.error = error
        self.calls: List[List[str]] = []

    async def find_by_flight_ids(self, flight_ids: Sequence[str]) -> Dict[str, List[SeatAvailability]]:
        self.calls.append(list(flight_ids))
        if self.error:
            raise self.error
        return await self._inner.find_by_flight_ids(flight_ids)


class FakeEnrichmentProvider:
    """Provedor controlável: atualizações fixas, voos que travam e falhas"""

    name = "Fake"

    def __init__(
        self,
        updates: Optional[Dict[str, PartialFlightUpdate]] = None,
        hang: Iterable[str] = (),
        errors: Optional[Dict[str, Exception]] = None,
        default_status: Optional[str] = "scheduled",
    ):
        self.updates = updates or {}
        self.hang = set(hang)
        self.errors = errors or {}
        self.default_status = default_status
        self.calls: List[str] = []

    async def fetch(self, flight: Flight) -> Optional[PartialFlightUpdate]:
        self.calls.append(flight.flight_id)
        if flight.flight_id in self.hang:
            await asyncio.sleep(3600)
        if flight.flight_id in self.errors:
            raise self.errors[flight.flight_id]
        if flight.flight_id in self.updates:
            return self.updates[flight.flight_id]
        if self.default_status is None:
            return None
        return PartialFlightUpdate(status=self.default_status)


class FailingCacheBackend(CacheBackendInterface):
    """Backend que falha em todas as operações"""

    async def get(self, key: str) -> Optional[bytes]:
        raise ConnectionError("cache unavailable")

    async def put(self, key: str, value: bytes, ttl: int) -> None:
        raise ConnectionError("cache unavailable")

    async def delete(self, key: str) -> bool:
        raise ConnectionError("cache unavailable")

    async def clear(self) -> int:
        raise ConnectionError("cache unavailable")


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def tomorrow() -> date:
    return (datetime.now(timezone.utc) + timedelta(days=1)).date()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def connection_flights(tomorrow):
    """JFK → ORD → SFO com conexão de 50 minutos"""
    return [
        make_flight("JFK-ORD-1", "JFK", "ORD", at(tomorrow, 7, 0), at(tomorrow, 10, 0), flight_number="AA100"),
        make_flight("ORD-SFO-1", "ORD", "SFO", at(tomorrow, 10, 50), at(tomorrow, 13, 30),
                    airline_id="UA", flight_number="UA200"),
    ]
