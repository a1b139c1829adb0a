"""
Resiliência para chamadas externas - token bucket e retry com backoff exponencial
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ..domain.exceptions import RateLimitTimeout, TransientProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRY_STATUSES = {429, 500, 502, 503, 504}


def is_transient(exc: BaseException) -> bool:
    """Falhas temporárias: timeouts, transporte, HTTP 429/5xx"""
    if isinstance(exc, (TransientProviderError, asyncio.TimeoutError,
                        httpx.TimeoutException, httpx.TransportError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRY_STATUSES
    return False


class AsyncTokenBucket:
    """Token bucket assíncrono com espera máxima por slot"""

    def __init__(
        self,
        rate: float,
        burst: int,
        max_wait: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if rate <= 0:
            raise ValueError("rate must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.rate = float(rate)
        self.capacity = float(burst)
        self.tokens = float(burst)
        self.max_wait = max_wait
        self._clock = clock
        self._updated = clock()
        self._lock = asyncio.Lock()

    @classmethod
    def per_minute(cls, limit: int, max_wait: float = 5.0, burst: Optional[int] = None) -> "AsyncTokenBucket":
        """Dimensiona o bucket pela cota publicada do provedor"""
        return cls(rate=limit / 60.0, burst=burst or limit, max_wait=max_wait)

    def _refill(self) -> None:
        now = self._clock()
        self.tokens = min(self.capacity, self.tokens + (now - self._updated) * self.rate)
        self._updated = now

    async def acquire(self, tokens: float = 1.0) -> float:
        """Reserva um slot; levanta RateLimitTimeout se a espera exceder max_wait"""
        async with self._lock:
            self._refill()
            wait = max(0.0, (tokens - self.tokens) / self.rate)
            if wait > self.max_wait:
                raise RateLimitTimeout(wait, self.max_wait)
            # Saldo negativo = slots já reservados por quem está esperando
            self.tokens -= tokens

        if wait > 0:
            await asyncio.sleep(wait)
        return wait


class RetryPolicy(BaseModel):
    """Retry com backoff exponencial limitado"""
    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0)
    multiplier: float = Field(default=2.0, ge=1)
    max_delay: float = Field(default=8.0, ge=0)

    def delay_for(self, attempt: int) -> float:
        """Espera após a tentativa `attempt` (1-based) falhar"""
        return min(self.max_delay, self.base_delay * self.multiplier ** (attempt - 1))

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        is_retryable: Callable[[BaseException], bool] = is_transient,
        description: str = "operation",
    ) -> T:
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except Exception as exc:
                if attempt >= self.max_attempts or not is_retryable(exc):
                    raise
                delay = self.delay_for(attempt)
                logger.debug(
                    "%s failed on attempt %d/%d (%s); retrying in %.2fs",
                    description, attempt, self.max_attempts, exc.__class__.__name__, delay,
                )
                await asyncio.sleep(delay)
        raise RuntimeError("unreachable")
