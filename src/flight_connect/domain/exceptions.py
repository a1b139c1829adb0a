"""
Domain Exceptions - Taxonomia de erros da busca de voos
"""
from typing import Any, Dict, Optional


class FlightSearchError(Exception):
    """Erro base do motor de busca"""


class ValidationError(FlightSearchError):
    """Critérios de busca malformados ou contraditórios"""

    def __init__(self, field: str, code: str, message: str):
        super().__init__(message)
        self.field = field
        self.code = code
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        """Payload para o chamador (4xx)"""
        return {"field": self.field, "code": self.code, "message": self.message}

    def __str__(self) -> str:
        return f"{self.message} (Field: {self.field}, Code: {self.code})"


class NotFoundError(FlightSearchError):
    """A busca não produziu resultados"""

    def __init__(self, message: str, cache_key: Optional[str] = None):
        super().__init__(message)
        self.cache_key = cache_key


class EnrichmentFailure(FlightSearchError):
    """Falha ao enriquecer um voo (nunca propagada além do EnrichmentClient)"""

    def __init__(self, flight_id: str, message: str):
        super().__init__(f"{message} (Flight Reference: {flight_id})")
        self.flight_id = flight_id


class TransientProviderError(FlightSearchError):
    """Falha temporária do provedor externo, elegível para retry"""


class RateLimitTimeout(FlightSearchError):
    """Não foi possível obter slot no rate limiter dentro da espera máxima"""

    def __init__(self, waited_for: float, max_wait: float):
        super().__init__(
            f"Rate limiter slot unavailable: would wait {waited_for:.2f}s (max {max_wait:.2f}s)"
        )
        self.waited_for = waited_for
        self.max_wait = max_wait


class RepositoryFailure(FlightSearchError):
    """Falha de infraestrutura de um repositório; aborta a busca"""

    public_message = "Flight search is temporarily unavailable"

    def __init__(self, collaborator: str, context: Dict[str, Any], message: str):
        super().__init__(f"{collaborator} failed: {message}")
        self.collaborator = collaborator
        self.context = context


class CacheFailure(FlightSearchError):
    """Falha do backend de cache; sempre absorvida pelo ResultCache"""

    def __init__(self, operation: str, key: str, message: str):
        super().__init__(f"Cache {operation} failed for '{key}': {message}")
        self.operation = operation
        self.key = key
