"""
Disponibilidade de assentos - anexação em lote e filtro por classe
"""
import logging
from typing import List, Optional, Sequence

from ..domain.models import Flight, Itinerary
from .interfaces import SeatAvailabilityRepositoryInterface

logger = logging.getLogger(__name__)


async def attach_seat_availability(
    flights: Sequence[Flight],
    repository: SeatAvailabilityRepositoryInterface,
) -> List[Flight]:
    """Anexa a cada voo apenas os seus próprios registros de assentos"""
    if not flights:
        return []

    flight_ids = list(dict.fromkeys(flight.flight_id for flight in flights))
    records = await repository.find_by_flight_ids(flight_ids)

    for flight in flights:
        for record in records.get(flight.flight_id, []):
            if record.flight_id == flight.flight_id:
                flight.seat_availability[record.seat_class] = record.available_seats

    logger.debug(
        "Attached seat availability for %d of %d flights",
        sum(1 for fid in flight_ids if records.get(fid)), len(flight_ids),
    )
    return list(flights)


def filter_by_seat_class(itineraries: Sequence[Itinerary], seat_class: Optional[str]) -> List[Itinerary]:
    """Mantém itinerários cujas legs têm assentos disponíveis na classe pedida"""
    if not seat_class:
        return list(itineraries)
    return [
        itinerary for itinerary in itineraries
        if all(leg.has_availability_for_class(seat_class) for leg in itinerary.legs)
    ]
