"""
Validação de critérios de busca - regras aplicadas em ordem, a primeira falha vence
"""
import re
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ValidationError


class SeatClass(str, Enum):
    """Classes de cabine suportadas"""
    ECONOMY = "ECONOMY"
    PREMIUM_ECONOMY = "PREMIUM_ECONOMY"
    BUSINESS = "BUSINESS"
    FIRST = "FIRST"


class ValidationCode:
    """Códigos de erro de validação expostos ao chamador"""
    MISSING_ORIGIN = "MISSING_ORIGIN"
    MISSING_DESTINATION = "MISSING_DESTINATION"
    MISSING_DEPARTURE_DATE = "MISSING_DEPARTURE_DATE"
    INVALID_ORIGIN_FORMAT = "INVALID_ORIGIN_FORMAT"
    INVALID_DESTINATION_FORMAT = "INVALID_DESTINATION_FORMAT"
    SAME_ORIGIN_DESTINATION = "SAME_ORIGIN_DESTINATION"
    INVALID_DEPARTURE_DATE = "INVALID_DEPARTURE_DATE"
    FUTURE_DATE_TOO_FAR = "FUTURE_DATE_TOO_FAR"
    INVALID_RETURN_DATE = "INVALID_RETURN_DATE"
    RETURN_DATE_TOO_FAR = "RETURN_DATE_TOO_FAR"
    TRIP_DURATION_TOO_LONG = "TRIP_DURATION_TOO_LONG"
    INVALID_SEAT_CLASS = "INVALID_SEAT_CLASS"
    INVALID_MAX_CONNECTIONS = "INVALID_MAX_CONNECTIONS"
    INVALID_PAGE = "INVALID_PAGE"
    INVALID_PAGE_SIZE = "INVALID_PAGE_SIZE"


class ValidationConfig(BaseModel):
    """Constantes de validação injetáveis (horizonte de busca, classes válidas)"""
    model_config = ConfigDict(frozen=True)

    max_days_ahead: int = Field(default=365, ge=1, description="Horizonte máximo de busca em dias")
    seat_classes: Tuple[str, ...] = Field(
        default=tuple(sc.value for sc in SeatClass),
        description="Classes de cabine aceitas",
    )
    airport_code_pattern: str = Field(default=r"^[A-Z]{3}$", description="Formato do código IATA")


DEFAULT_VALIDATION_CONFIG = ValidationConfig()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Datas sem timezone são tratadas como UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _coerce_date(value: Any, field: str, code: str) -> Tuple[datetime, bool]:
    """Converte datetime/date/ISO string em datetime UTC; indica se era apenas data"""
    if isinstance(value, datetime):
        return to_utc(value), False
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc), True
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return datetime.combine(date.fromisoformat(text), time.min, tzinfo=timezone.utc), True
            return to_utc(datetime.fromisoformat(text.replace("Z", "+00:00"))), False
        except ValueError:
            pass
    raise ValidationError(field, code, f"{field} must be an ISO date or datetime")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _normalize_code(value: Any) -> Any:
    return value.strip().upper() if isinstance(value, str) else value


def validate_criteria(
    data: Dict[str, Any],
    config: Optional[ValidationConfig] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Valida e normaliza os campos brutos de uma busca.

    Ordem: campos obrigatórios, formato dos aeroportos, origem != destino,
    data de partida, data de retorno, classe de cabine.
    """
    config = config or DEFAULT_VALIDATION_CONFIG
    now = to_utc(now) if now else utc_now()
    horizon = timedelta(days=config.max_days_ahead)

    # 1. Campos obrigatórios
    if _is_blank(data.get("origin")):
        raise ValidationError("origin", ValidationCode.MISSING_ORIGIN, "Origin is required")
    if _is_blank(data.get("destination")):
        raise ValidationError("destination", ValidationCode.MISSING_DESTINATION, "Destination is required")
    if _is_blank(data.get("departure_date")):
        raise ValidationError(
            "departure_date", ValidationCode.MISSING_DEPARTURE_DATE, "Departure date is required"
        )

    # 2. Formato dos códigos IATA
    origin = _normalize_code(data["origin"])
    destination = _normalize_code(data["destination"])
    pattern = re.compile(config.airport_code_pattern)
    if not isinstance(origin, str) or not pattern.match(origin):
        raise ValidationError(
            "origin", ValidationCode.INVALID_ORIGIN_FORMAT,
            "Origin must be a valid 3-letter IATA airport code",
        )
    if not isinstance(destination, str) or not pattern.match(destination):
        raise ValidationError(
            "destination", ValidationCode.INVALID_DESTINATION_FORMAT,
            "Destination must be a valid 3-letter IATA airport code",
        )

    # 3. Origem e destino distintos
    if origin == destination:
        raise ValidationError(
            "destination", ValidationCode.SAME_ORIGIN_DESTINATION,
            "Origin and destination cannot be the same",
        )

    # 4. Data de partida
    departure, date_only = _coerce_date(
        data["departure_date"], "departure_date", ValidationCode.INVALID_DEPARTURE_DATE
    )
    if date_only:
        earliest = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    else:
        earliest = now.replace(second=0, microsecond=0)
    if departure < earliest:
        raise ValidationError(
            "departure_date", ValidationCode.INVALID_DEPARTURE_DATE,
            "Departure date cannot be in the past",
        )
    if departure > now + horizon:
        raise ValidationError(
            "departure_date", ValidationCode.FUTURE_DATE_TOO_FAR,
            f"Cannot search flights more than {config.max_days_ahead} days in advance",
        )

    # 5. Data de retorno (opcional)
    return_date = None
    if not _is_blank(data.get("return_date")):
        return_date, return_date_only = _coerce_date(
            data["return_date"], "return_date", ValidationCode.INVALID_RETURN_DATE
        )
        earliest_return = (
            datetime.combine(departure.date(), time.min, tzinfo=timezone.utc)
            if return_date_only else departure
        )
        if return_date < earliest_return:
            raise ValidationError(
                "return_date", ValidationCode.INVALID_RETURN_DATE,
                "Return date must be after departure date",
            )
        if return_date > now + horizon:
            raise ValidationError(
                "return_date", ValidationCode.RETURN_DATE_TOO_FAR,
                f"Return date cannot be more than {config.max_days_ahead} days in the future",
            )
        if return_date - departure > horizon:
            raise ValidationError(
                "return_date", ValidationCode.TRIP_DURATION_TOO_LONG,
                "Trip duration cannot exceed maximum allowed period",
            )

    # 6. Classe de cabine
    seat_class = data.get("seat_class")
    if isinstance(seat_class, SeatClass):
        seat_class = seat_class.value
    if _is_blank(seat_class):
        seat_class = None
    else:
        seat_class = str(seat_class).strip().upper()
        if seat_class not in config.seat_classes:
            raise ValidationError(
                "seat_class", ValidationCode.INVALID_SEAT_CLASS,
                "Invalid seat class. Must be one of: " + ", ".join(config.seat_classes),
            )

    return {
        "origin": origin,
        "destination": destination,
        "departure_date": departure,
        "return_date": return_date,
        "seat_class": seat_class,
    }


def validate_max_connections(max_connections: Any) -> int:
    """Profundidade de conexão limitada a 0, 1 ou 2 por política"""
    if isinstance(max_connections, bool) or not isinstance(max_connections, int) \
            or not 0 <= max_connections <= 2:
        raise ValidationError(
            "max_connections", ValidationCode.INVALID_MAX_CONNECTIONS,
            "Maximum connections must be between 0 and 2",
        )
    return max_connections
