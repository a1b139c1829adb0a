"""
Domain Models - Entidades de negócio puras
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .exceptions import ValidationError
from .validation import (
    SeatClass,
    ValidationCode,
    ValidationConfig,
    to_utc,
    validate_criteria,
)

AIRPORT_CODE_PATTERN = r"^[A-Z]{3}$"
MAX_PAGE_SIZE = 100


def minutes_between(earlier: datetime, later: datetime) -> int:
    """Minutos inteiros entre dois instantes (truncado em direção a zero)"""
    return int((later - earlier).total_seconds() / 60)


class SearchCriteria(BaseModel):
    """Critérios de busca validados e imutáveis"""
    model_config = ConfigDict(frozen=True)

    origin: str = Field(..., description="IATA origem")
    destination: str = Field(..., description="IATA destino")
    departure_date: datetime = Field(..., description="Data de partida (UTC)")
    return_date: Optional[datetime] = Field(None, description="Data de retorno (UTC)")
    seat_class: Optional[str] = Field(None, description="Classe da cabine")

    @model_validator(mode="before")
    @classmethod
    def _validate_rules(cls, data: Any, info: ValidationInfo) -> Any:
        if not isinstance(data, dict):
            return data
        context = info.context or {}
        return validate_criteria(data, config=context.get("config"), now=context.get("now"))

    @classmethod
    def build(
        cls,
        origin: Optional[str],
        destination: Optional[str],
        departure_date: Any,
        return_date: Any = None,
        seat_class: Any = None,
        *,
        config: Optional[ValidationConfig] = None,
        now: Optional[datetime] = None,
    ) -> "SearchCriteria":
        """Builder validador: ou retorna critérios válidos ou levanta ValidationError"""
        return cls.model_validate(
            {
                "origin": origin,
                "destination": destination,
                "departure_date": departure_date,
                "return_date": return_date,
                "seat_class": seat_class,
            },
            context={"config": config, "now": now},
        )

    def is_round_trip(self) -> bool:
        """Verifica se é ida e volta"""
        return self.return_date is not None

    def cache_key(self) -> str:
        """Chave determinística: rota + datas truncadas ao dia + classe"""
        return_part = self.return_date.date().isoformat() if self.return_date else "ONEWAY"
        return "-".join([
            self.origin,
            self.destination,
            self.departure_date.date().isoformat(),
            return_part,
            self.seat_class or "ANY",
        ])


class SeatAvailability(BaseModel):
    """Registro de assentos disponíveis por classe para um voo"""
    flight_id: str = Field(..., description="Identificador do voo")
    seat_class: str = Field(..., description="Classe da cabine")
    available_seats: int = Field(..., ge=0, description="Assentos disponíveis")

    @field_validator("seat_class")
    @classmethod
    def _upper_class(cls, value: str) -> str:
        return value.strip().upper()


class PartialFlightUpdate(BaseModel):
    """Dados confirmados em tempo real vindos de um provedor externo"""
    departure_time: Optional[datetime] = None
    arrival_time: Optional[datetime] = None
    status: Optional[str] = None

    @field_validator("departure_time", "arrival_time")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc(value) if value else value

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class Flight(BaseModel):
    """Segmento de voo individual (leg)"""
    flight_id: str = Field(..., description="Identificador opaco e único")
    airline_id: str = Field(..., description="Companhia aérea")
    flight_number: Optional[str] = Field(None, description="Número do voo")
    origin: str = Field(..., pattern=AIRPORT_CODE_PATTERN, description="IATA origem")
    destination: str = Field(..., pattern=AIRPORT_CODE_PATTERN, description="IATA destino")
    departure_time: datetime = Field(..., description="Partida (UTC)")
    arrival_time: datetime = Field(..., description="Chegada (UTC)")
    status: Optional[str] = Field(None, description="Status em tempo real")
    seat_availability: Dict[str, int] = Field(
        default_factory=dict, description="Assentos disponíveis por classe"
    )

    @field_validator("departure_time", "arrival_time")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return to_utc(value)

    @field_validator("seat_availability")
    @classmethod
    def _non_negative_seats(cls, value: Dict[str, int]) -> Dict[str, int]:
        if any(count < 0 for count in value.values()):
            raise ValueError("Available seats cannot be negative")
        return {seat_class.upper(): count for seat_class, count in value.items()}

    @model_validator(mode="after")
    def _check_route_and_times(self) -> "Flight":
        if self.origin == self.destination:
            raise ValueError("Flight origin and destination must differ")
        if self.arrival_time <= self.departure_time:
            raise ValueError("Arrival time must be after departure time")
        return self

    @property
    def duration_minutes(self) -> int:
        """Duração do voo em minutos"""
        return minutes_between(self.departure_time, self.arrival_time)

    def has_availability_for_class(self, seat_class: str) -> bool:
        return self.available_seats_for_class(seat_class) > 0

    def available_seats_for_class(self, seat_class: str) -> int:
        return self.seat_availability.get(seat_class.upper(), 0)

    def apply_update(self, update: PartialFlightUpdate) -> "Flight":
        """Retorna uma cópia validada com os valores confirmados sobrescritos"""
        changes = update.model_dump(exclude_none=True)
        if not changes:
            return self
        return Flight.model_validate({**self.model_dump(), **changes})


class Itinerary(BaseModel):
    """Sequência ordenada de 1 a 3 legs entre origem e destino"""
    legs: List[Flight] = Field(..., min_length=1, max_length=3)

    @model_validator(mode="after")
    def _check_continuity(self) -> "Itinerary":
        for previous, following in zip(self.legs, self.legs[1:]):
            if previous.destination != following.origin:
                raise ValueError(
                    f"Leg {following.flight_id} does not depart from {previous.destination}"
                )
            if following.departure_time < previous.arrival_time:
                raise ValueError(
                    f"Leg {following.flight_id} departs before {previous.flight_id} arrives"
                )
        return self

    @property
    def connections(self) -> int:
        return len(self.legs) - 1

    @property
    def origin(self) -> str:
        return self.legs[0].origin

    @property
    def destination(self) -> str:
        return self.legs[-1].destination

    @property
    def departure_time(self) -> datetime:
        return self.legs[0].departure_time

    @property
    def arrival_time(self) -> datetime:
        return self.legs[-1].arrival_time

    @property
    def total_duration_minutes(self) -> int:
        return minutes_between(self.departure_time, self.arrival_time)

    @property
    def layover_minutes(self) -> List[int]:
        """Tempo de conexão entre cada par de legs"""
        return [
            minutes_between(previous.arrival_time, following.departure_time)
            for previous, following in zip(self.legs, self.legs[1:])
        ]

    @property
    def airlines(self) -> List[str]:
        return sorted({leg.airline_id for leg in self.legs})

    @property
    def route_summary(self) -> str:
        """Resumo da rota"""
        return " → ".join([self.legs[0].origin] + [leg.destination for leg in self.legs])


class SearchResult(BaseModel):
    """Resultado de uma busca"""
    itineraries: List[Itinerary]
    search_criteria: SearchCriteria
    max_connections: int = 0
    search_timestamp: datetime
    total_results: int
    from_cache: bool = False
    page: int = 0
    page_size: Optional[int] = None

    @property
    def has_results(self) -> bool:
        return bool(self.itineraries)

    @property
    def flights(self) -> List[Flight]:
        """Todas as legs, na ordem dos itinerários"""
        return [leg for itinerary in self.itineraries for leg in itinerary.legs]

    @property
    def unique_airlines(self) -> int:
        return len({leg.airline_id for leg in self.flights})

    @property
    def total_pages(self) -> int:
        if not self.page_size or not self.total_results:
            return 1 if self.total_results else 0
        return -(-self.total_results // self.page_size)

    @property
    def earliest_itinerary(self) -> Optional[Itinerary]:
        """Itinerário com partida mais cedo"""
        if not self.itineraries:
            return None
        return min(self.itineraries, key=lambda x: x.departure_time)

    @property
    def shortest_itinerary(self) -> Optional[Itinerary]:
        """Itinerário com menor duração total"""
        if not self.itineraries:
            return None
        return min(self.itineraries, key=lambda x: x.total_duration_minutes)

    def paginate(self, page: int, size: int) -> "SearchResult":
        """Recorta uma página dos itinerários mantendo o total"""
        if page < 0:
            raise ValidationError("page", ValidationCode.INVALID_PAGE, "Page number cannot be negative")
        if size < 1 or size > MAX_PAGE_SIZE:
            raise ValidationError(
                "size", ValidationCode.INVALID_PAGE_SIZE,
                f"Page size must be between 1 and {MAX_PAGE_SIZE}",
            )
        start = page * size
        return self.model_copy(update={
            "itineraries": self.itineraries[start:start + size],
            "page": page,
            "page_size": size,
        })


__all__ = [
    "Flight",
    "Itinerary",
    "PartialFlightUpdate",
    "SeatAvailability",
    "SeatClass",
    "SearchCriteria",
    "SearchResult",
    "ValidationConfig",
    "minutes_between",
]
