"""
Provedor AviationStack - horários confirmados e status em tempo real
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from ...domain.exceptions import EnrichmentFailure, TransientProviderError
from ...domain.models import Flight, PartialFlightUpdate
from ..config import Config

logger = logging.getLogger(__name__)

RATE_LIMIT_ERRORS = {"rate_limit_reached", "usage_limit_reached"}


class AviationStackProvider:
    """Provedor de enriquecimento via AviationStack API"""

    name = "AviationStack"

    def __init__(self, config: Config = Config(), transport: Optional[httpx.AsyncBaseTransport] = None):
        self._config = config
        self._base_url = config.AVIATIONSTACK_BASE_URL.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        # Um cliente por provedor: o lote inteiro compartilha o pool de conexões
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.ENRICHMENT_TIMEOUT,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, flight: Flight) -> Optional[PartialFlightUpdate]:
        """Dados confirmados do voo; erros HTTP propagam para a política de retry"""
        if not self._config.is_aviationstack_configured():
            return None

        params = self._build_params(flight)
        if params is None:
            return None

        response = await self._get_client().get(f"{self._base_url}/flights", params=params)
        response.raise_for_status()
        data = response.json()

        error = data.get("error")
        if error:
            code = str(error.get("code", ""))
            message = error.get("message") or code or "unknown error"
            if code in RATE_LIMIT_ERRORS:
                raise TransientProviderError(f"AviationStack rate limited: {message}")
            raise EnrichmentFailure(flight.flight_id, f"AviationStack error: {message}")

        return self._parse_response(data)

    def _build_params(self, flight: Flight) -> Optional[Dict[str, str]]:
        """Constrói parâmetros da requisição"""
        flight_iata = self._flight_iata(flight)
        if not flight_iata:
            return None
        return {
            "access_key": self._config.AVIATIONSTACK_API_KEY,
            "flight_iata": flight_iata,
            "dep_iata": flight.origin,
            "arr_iata": flight.destination,
        }

    @staticmethod
    def _flight_iata(flight: Flight) -> Optional[str]:
        if not flight.flight_number:
            return None
        number = flight.flight_number.replace(" ", "").upper()
        airline = flight.airline_id.upper()
        return number if number.startswith(airline) else f"{airline}{number}"

    def _parse_response(self, data: Dict[str, Any]) -> Optional[PartialFlightUpdate]:
        """Converte o primeiro registro da resposta em atualização parcial"""
        records = data.get("data") or []
        if not records:
            return None

        item = records[0]
        departure = item.get("departure") or {}
        arrival = item.get("arrival") or {}

        return PartialFlightUpdate(
            departure_time=self._parse_time(departure.get("estimated") or departure.get("scheduled")),
            arrival_time=self._parse_time(arrival.get("estimated") or arrival.get("scheduled")),
            status=item.get("flight_status"),
        )

    @staticmethod
    def _parse_time(value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Ignoring unparseable AviationStack time: %s", value)
            return None
