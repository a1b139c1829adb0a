"""
Interfaces/Contratos para Application Layer
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Protocol, Sequence

from ..domain.models import Flight, PartialFlightUpdate, SeatAvailability, SearchCriteria


class FlightRepositoryInterface(ABC):
    """Repositório de voos (armazenamento externo)"""

    @abstractmethod
    async def find_by_criteria(self, criteria: SearchCriteria) -> List[Flight]:
        """Voos diretos para rota e data dos critérios"""
        pass

    @abstractmethod
    async def find_by_route(self, origin: str, destination: Optional[str] = None) -> List[Flight]:
        """Voos da rota em qualquer data; destination=None retorna todos os destinos"""
        pass

    @abstractmethod
    async def find_by_id(self, flight_id: str) -> Optional[Flight]:
        """Voo pelo identificador, ou None"""
        pass


class SeatAvailabilityRepositoryInterface(ABC):
    """Repositório de disponibilidade de assentos"""

    @abstractmethod
    async def find_by_flight_ids(self, flight_ids: Sequence[str]) -> Dict[str, List[SeatAvailability]]:
        """Busca em lote: flight_id -> registros de assentos"""
        pass


class EnrichmentProviderInterface(Protocol):
    """Interface para provedores de dados em tempo real"""
    name: str

    async def fetch(self, flight: Flight) -> Optional[PartialFlightUpdate]:
        """Dados confirmados para o voo, ou None se não houver"""
        ...


class CacheBackendInterface(ABC):
    """Armazenamento chave/valor com TTL"""

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        pass

    @abstractmethod
    async def put(self, key: str, value: bytes, ttl: int) -> None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    async def clear(self) -> int:
        """Remove todas as entradas do namespace; retorna quantas"""
        pass
