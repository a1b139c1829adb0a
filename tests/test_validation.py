"""
Testes de validação dos critérios de busca
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from flight_connect.domain.exceptions import ValidationError
from flight_connect.domain.models import SearchCriteria
from flight_connect.domain.validation import (
    SeatClass,
    ValidationCode,
    ValidationConfig,
    validate_max_connections,
)

NOW = datetime(2026, 10, 16, 12, 30, 45, tzinfo=timezone.utc)


def build(**overrides):
    fields = {
        "origin": "JFK",
        "destination": "LAX",
        "departure_date": "2026-10-17",
    }
    fields.update(overrides)
    config = fields.pop("config", None)
    return SearchCriteria.build(**fields, config=config, now=NOW)


def test_valid_criteria_are_normalized():
    criteria = build(origin=" jfk ", destination="lax", seat_class="business")

    assert criteria.origin == "JFK"
    assert criteria.destination == "LAX"
    assert criteria.seat_class == "BUSINESS"
    assert criteria.departure_date == datetime(2026, 10, 17, tzinfo=timezone.utc)
    assert not criteria.is_round_trip()


@pytest.mark.parametrize("field,code", [
    ("origin", ValidationCode.MISSING_ORIGIN),
    ("destination", ValidationCode.MISSING_DESTINATION),
    ("departure_date", ValidationCode.MISSING_DEPARTURE_DATE),
])
def test_missing_required_fields(field, code):
    with pytest.raises(ValidationError) as exc:
        build(**{field: None})
    assert exc.value.code == code
    assert exc.value.field == field


def test_blank_origin_is_missing():
    with pytest.raises(ValidationError) as exc:
        build(origin="   ")
    assert exc.value.code == ValidationCode.MISSING_ORIGIN


@pytest.mark.parametrize("origin", ["JF", "JFKX", "J1K", "12A"])
def test_invalid_origin_format(origin):
    with pytest.raises(ValidationError) as exc:
        build(origin=origin)
    assert exc.value.code == ValidationCode.INVALID_ORIGIN_FORMAT


def test_invalid_destination_format():
    with pytest.raises(ValidationError) as exc:
        build(destination="LA-X")
    assert exc.value.code == ValidationCode.INVALID_DESTINATION_FORMAT


def test_same_origin_and_destination_rejected_case_insensitively():
    with pytest.raises(ValidationError) as exc:
        build(origin="jfk", destination="JFK")
    assert exc.value.code == ValidationCode.SAME_ORIGIN_DESTINATION


def test_departure_today_date_only_is_accepted():
    criteria = build(departure_date=date(2026, 10, 16))
    assert criteria.departure_date.date() == date(2026, 10, 16)


def test_departure_in_the_past_rejected():
    with pytest.raises(ValidationError) as exc:
        build(departure_date="2026-10-15")
    assert exc.value.code == ValidationCode.INVALID_DEPARTURE_DATE


def test_departure_datetime_earlier_in_the_current_minute_is_accepted():
    criteria = build(departure_date=datetime(2026, 10, 16, 12, 30, 0, tzinfo=timezone.utc))
    assert criteria.departure_date.minute == 30


def test_departure_datetime_before_now_rejected():
    with pytest.raises(ValidationError) as exc:
        build(departure_date=datetime(2026, 10, 16, 12, 29, tzinfo=timezone.utc))
    assert exc.value.code == ValidationCode.INVALID_DEPARTURE_DATE


def test_unparseable_departure_rejected():
    with pytest.raises(ValidationError) as exc:
        build(departure_date="next tuesday")
    assert exc.value.code == ValidationCode.INVALID_DEPARTURE_DATE


def test_departure_400_days_ahead_is_too_far():
    with pytest.raises(ValidationError) as exc:
        build(departure_date=(NOW + timedelta(days=400)).date())
    assert exc.value.code == ValidationCode.FUTURE_DATE_TOO_FAR


def test_search_horizon_is_configurable():
    config = ValidationConfig(max_days_ahead=30)
    with pytest.raises(ValidationError) as exc:
        build(departure_date=(NOW + timedelta(days=31)).date(), config=config)
    assert exc.value.code == ValidationCode.FUTURE_DATE_TOO_FAR

    criteria = build(departure_date=(NOW + timedelta(days=29)).date(), config=config)
    assert criteria.departure_date.date() == (NOW + timedelta(days=29)).date()


def test_return_before_departure_rejected():
    with pytest.raises(ValidationError) as exc:
        build(departure_date="2026-10-20", return_date="2026-10-19")
    assert exc.value.code == ValidationCode.INVALID_RETURN_DATE


def test_return_on_departure_day_is_round_trip():
    criteria = build(departure_date="2026-10-20", return_date="2026-10-20")
    assert criteria.is_round_trip()


def test_date_only_return_on_same_day_as_timed_departure():
    criteria = build(departure_date="2026-10-20T15:00", return_date="2026-10-20")
    assert criteria.is_round_trip()

    with pytest.raises(ValidationError) as exc:
        build(departure_date="2026-10-20T15:00", return_date="2026-10-19")
    assert exc.value.code == ValidationCode.INVALID_RETURN_DATE


def test_return_beyond_horizon_rejected():
    with pytest.raises(ValidationError) as exc:
        build(departure_date="2026-10-20", return_date=(NOW + timedelta(days=366)).date())
    assert exc.value.code == ValidationCode.RETURN_DATE_TOO_FAR


def test_trip_duration_limited_by_horizon():
    config = ValidationConfig(max_days_ahead=10)
    with pytest.raises(ValidationError) as exc:
        # Retorno dentro do horizonte mas a viagem dura mais que ele
        build(
            departure_date="2026-10-16",
            return_date=datetime(2026, 10, 26, 12, 30, tzinfo=timezone.utc),
            config=config,
        )
    assert exc.value.code == ValidationCode.TRIP_DURATION_TOO_LONG


def test_invalid_seat_class():
    with pytest.raises(ValidationError) as exc:
        build(seat_class="LUXURY")
    assert exc.value.code == ValidationCode.INVALID_SEAT_CLASS


def test_seat_class_enum_and_blank():
    assert build(seat_class=SeatClass.FIRST).seat_class == "FIRST"
    assert build(seat_class="  ").seat_class is None


def test_validation_error_payload():
    with pytest.raises(ValidationError) as exc:
        build(origin="JFK", destination="JFK")

    payload = exc.value.to_dict()
    assert payload == {
        "field": "destination",
        "code": ValidationCode.SAME_ORIGIN_DESTINATION,
        "message": "Origin and destination cannot be the same",
    }
    assert "Code: SAME_ORIGIN_DESTINATION" in str(exc.value)


def test_cache_key_ignores_time_of_day():
    morning = build(departure_date=datetime(2026, 10, 17, 6, 0, tzinfo=timezone.utc))
    evening = build(departure_date=datetime(2026, 10, 17, 21, 45, tzinfo=timezone.utc))

    assert morning.cache_key() == evening.cache_key() == "JFK-LAX-2026-10-17-ONEWAY-ANY"


def test_cache_key_includes_return_and_class():
    criteria = build(origin="gru", destination="lis", departure_date="2026-11-01",
                     return_date="2026-11-10", seat_class="economy")
    assert criteria.cache_key() == "GRU-LIS-2026-11-01-2026-11-10-ECONOMY"


def test_criteria_are_immutable_and_hashable():
    criteria = build()
    assert criteria == build()
    assert hash(criteria) == hash(build())
    with pytest.raises(Exception):
        criteria.origin = "SFO"


@pytest.mark.parametrize("value", [0, 1, 2])
def test_max_connections_accepted(value):
    assert validate_max_connections(value) == value


@pytest.mark.parametrize("value", [-1, 3, True, "1", 1.0])
def test_max_connections_rejected(value):
    with pytest.raises(ValidationError) as exc:
        validate_max_connections(value)
    assert exc.value.code == ValidationCode.INVALID_MAX_CONNECTIONS
