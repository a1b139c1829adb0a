"""
Configuração da aplicação
"""
import os
from dotenv import load_dotenv

from ..application.cache import TtlPolicy
from ..application.connections import ConnectionWindow
from ..application.resilience import AsyncTokenBucket, RetryPolicy
from ..domain.validation import ValidationConfig

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuração centralizada"""

    # API Keys
    AVIATIONSTACK_API_KEY = os.getenv("AVIATIONSTACK_API_KEY", "")
    AVIATIONSTACK_BASE_URL = os.getenv("AVIATIONSTACK_BASE_URL", "http://api.aviationstack.com/v1")

    # Regras de busca
    MIN_CONNECTION_MINUTES = int(os.getenv("MIN_CONNECTION_MINUTES", "45"))
    MAX_CONNECTION_MINUTES = int(os.getenv("MAX_CONNECTION_MINUTES", "240"))
    MAX_SEARCH_DAYS_AHEAD = int(os.getenv("MAX_SEARCH_DAYS_AHEAD", "365"))

    # Enriquecimento
    ENRICHMENT_BATCH_SIZE = int(os.getenv("ENRICHMENT_BATCH_SIZE", "50"))
    ENRICHMENT_MAX_ATTEMPTS = int(os.getenv("ENRICHMENT_MAX_ATTEMPTS", "3"))
    ENRICHMENT_BASE_DELAY = float(os.getenv("ENRICHMENT_BASE_DELAY", "1.0"))
    ENRICHMENT_MAX_DELAY = float(os.getenv("ENRICHMENT_MAX_DELAY", "8.0"))
    ENRICHMENT_RATE_PER_MINUTE = int(os.getenv("ENRICHMENT_RATE_PER_MINUTE", "100"))
    ENRICHMENT_BURST = int(os.getenv("ENRICHMENT_BURST", "10"))
    ENRICHMENT_MAX_WAIT = float(os.getenv("ENRICHMENT_MAX_WAIT", "5.0"))
    ENRICHMENT_TIMEOUT = int(os.getenv("ENRICHMENT_TIMEOUT", "10"))

    # Limites
    MAX_CONCURRENT_REQUESTS = int(os.getenv("MAX_CONCURRENT_REQUESTS", "10"))

    # Cache
    REDIS_URL = os.getenv("REDIS_URL", "")
    USE_REDIS = _as_bool(os.getenv("USE_REDIS", "false"))
    CACHE_MAX_SIZE = int(os.getenv("CACHE_MAX_SIZE", "1000"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    @classmethod
    def is_aviationstack_configured(cls) -> bool:
        return bool(cls.AVIATIONSTACK_API_KEY)

    @classmethod
    def is_redis_configured(cls) -> bool:
        return cls.USE_REDIS and bool(cls.REDIS_URL)

    @classmethod
    def connection_window(cls) -> ConnectionWindow:
        return ConnectionWindow(
            min_minutes=cls.MIN_CONNECTION_MINUTES,
            max_minutes=cls.MAX_CONNECTION_MINUTES,
        )

    @classmethod
    def validation_config(cls) -> ValidationConfig:
        return ValidationConfig(max_days_ahead=cls.MAX_SEARCH_DAYS_AHEAD)

    @classmethod
    def retry_policy(cls) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=cls.ENRICHMENT_MAX_ATTEMPTS,
            base_delay=cls.ENRICHMENT_BASE_DELAY,
            max_delay=cls.ENRICHMENT_MAX_DELAY,
        )

    @classmethod
    def rate_limiter(cls) -> AsyncTokenBucket:
        """Token bucket dimensionado pela cota do AviationStack"""
        return AsyncTokenBucket.per_minute(
            cls.ENRICHMENT_RATE_PER_MINUTE,
            max_wait=cls.ENRICHMENT_MAX_WAIT,
            burst=cls.ENRICHMENT_BURST,
        )

    @classmethod
    def ttl_policy(cls) -> TtlPolicy:
        return TtlPolicy()
