"""
Testes do ConnectionFinder
"""
from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from flight_connect.application.connections import ConnectionFinder, ConnectionWindow
from flight_connect.domain.exceptions import ValidationError

from conftest import RecordingFlightRepository, at, make_flight

DAY = date(2026, 11, 2)


def leg(flight_id, origin, destination, dep, arr):
    return make_flight(flight_id, origin, destination, at(DAY, *dep), at(DAY, *arr))


def test_window_rejects_inverted_bounds():
    with pytest.raises(PydanticValidationError):
        ConnectionWindow(min_minutes=60, max_minutes=30)


@pytest.mark.parametrize("gap,expected", [(44, False), (45, True), (240, True), (241, False)])
def test_connection_window_bounds_are_inclusive(gap, expected):
    first = leg("A", "JFK", "ORD", (7, 0), (10, 0))
    departure_hour, departure_minute = divmod(10 * 60 + gap, 60)
    second = leg("B", "ORD", "SFO", (departure_hour, departure_minute), (23, 0))

    finder = ConnectionFinder(RecordingFlightRepository())
    assert finder.is_valid_connection(first, second) is expected


def test_connection_requires_same_airport():
    first = leg("A", "JFK", "ORD", (7, 0), (10, 0))
    second = leg("B", "MDW", "SFO", (11, 0), (14, 0))
    assert not ConnectionFinder(RecordingFlightRepository()).is_valid_connection(first, second)


@pytest.mark.asyncio
async def test_zero_connections_delegates_to_route_lookup():
    direct = leg("D1", "JFK", "SFO", (8, 0), (14, 0))
    repository = RecordingFlightRepository([direct, leg("X", "JFK", "ORD", (7, 0), (10, 0))])

    itineraries = await ConnectionFinder(repository).find("JFK", "SFO", 0)

    assert [i.legs[0].flight_id for i in itineraries] == ["D1"]
    assert repository.calls == [("find_by_route", "JFK", "SFO")]


@pytest.mark.asyncio
async def test_single_connection_within_window():
    repository = RecordingFlightRepository([
        leg("JFK-ORD", "JFK", "ORD", (7, 0), (10, 0)),
        leg("ORD-SFO", "ORD", "SFO", (10, 50), (13, 30)),
    ])

    itineraries = await ConnectionFinder(repository).find("JFK", "SFO", 1)

    assert len(itineraries) == 1
    assert [l.flight_id for l in itineraries[0].legs] == ["JFK-ORD", "ORD-SFO"]
    assert itineraries[0].layover_minutes == [50]


@pytest.mark.asyncio
async def test_single_connection_too_short_is_dropped():
    repository = RecordingFlightRepository([
        leg("JFK-ORD", "JFK", "ORD", (7, 0), (10, 0)),
        leg("ORD-SFO", "ORD", "SFO", (10, 20), (13, 0)),
    ])

    assert await ConnectionFinder(repository).find("JFK", "SFO", 1) == []


@pytest.mark.asyncio
async def test_single_connection_ignores_direct_flights():
    repository = RecordingFlightRepository([
        leg("DIRECT", "JFK", "SFO", (8, 0), (14, 0)),
        leg("JFK-ORD", "JFK", "ORD", (7, 0), (10, 0)),
        leg("ORD-SFO", "ORD", "SFO", (11, 0), (14, 0)),
    ])

    itineraries = await ConnectionFinder(repository).find("JFK", "SFO", 1)

    assert [i.connections for i in itineraries] == [1]


@pytest.mark.asyncio
async def test_two_connections_include_one_stop_pairs():
    repository = RecordingFlightRepository([
        leg("JFK-ORD", "JFK", "ORD", (6, 0), (8, 0)),
        leg("ORD-SFO", "ORD", "SFO", (9, 0), (12, 0)),
        leg("ORD-DEN", "ORD", "DEN", (9, 30), (11, 0)),
        leg("DEN-SFO", "DEN", "SFO", (12, 0), (14, 0)),
        leg("DEN-SFO-LATE", "DEN", "SFO", (18, 0), (20, 0)),
    ])

    itineraries = await ConnectionFinder(repository).find("JFK", "SFO", 2)
    routes = sorted(i.route_summary for i in itineraries)

    assert routes == ["JFK → ORD → DEN → SFO", "JFK → ORD → SFO"]
    for itinerary in itineraries:
        for gap in itinerary.layover_minutes:
            assert 45 <= gap <= 240


@pytest.mark.asyncio
async def test_route_lookups_are_memoized_per_search():
    repository = RecordingFlightRepository([
        leg("JFK-ORD-1", "JFK", "ORD", (6, 0), (8, 0)),
        leg("JFK-ORD-2", "JFK", "ORD", (7, 0), (9, 0)),
        leg("ORD-SFO", "ORD", "SFO", (10, 0), (12, 0)),
    ])

    itineraries = await ConnectionFinder(repository).find("JFK", "SFO", 1)

    assert len(itineraries) == 2
    assert repository.calls.count(("find_by_route", "ORD", "SFO")) == 1


@pytest.mark.asyncio
async def test_custom_window():
    repository = RecordingFlightRepository([
        leg("JFK-ORD", "JFK", "ORD", (7, 0), (10, 0)),
        leg("ORD-SFO", "ORD", "SFO", (10, 30), (13, 0)),
    ])
    finder = ConnectionFinder(repository, ConnectionWindow(min_minutes=30, max_minutes=720))

    assert len(await finder.find("JFK", "SFO", 1)) == 1


@pytest.mark.asyncio
async def test_rejects_unsupported_depth():
    with pytest.raises(ValidationError):
        await ConnectionFinder(RecordingFlightRepository()).find("JFK", "SFO", 3)
