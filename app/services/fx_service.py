"""Exchange rates with a TTL-bounded cache.

Rates are looked up from ``FX_API_URL`` and kept per (from, to) pair in a
:class:`RateCache`. When the lookup fails the hardcoded fallback table is used,
so converting a payment amount never blocks a checkout.
"""
import logging
import time
from decimal import Decimal
from functools import lru_cache
from typing import Callable, Protocol

import requests

from app.core.config import settings
from app.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)

# 1 <from> = N <to>
FALLBACK_RATES = {
    ("USD", "IDR"): Decimal("16000"),
}


def fallback_rate(from_currency: str, to_currency: str) -> Decimal | None:
    if (from_currency, to_currency) in FALLBACK_RATES:
        return FALLBACK_RATES[(from_currency, to_currency)]
    inverse = FALLBACK_RATES.get((to_currency, from_currency))
    if inverse:
        return Decimal(1) / inverse
    return None


class RateCache(Protocol):
    def get(self, key: str) -> Decimal | None: ...

    def set(self, key: str, value: Decimal, ttl_seconds: int) -> None: ...


class InMemoryRateCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: dict[str, tuple[Decimal, float]] = {}

    def get(self, key: str) -> Decimal | None:
        hit = self._data.get(key)
        if not hit:
            return None
        value, expires_at = hit
        if self._clock() >= expires_at:
            self._data.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Decimal, ttl_seconds: int) -> None:
        self._data[key] = (value, self._clock() + ttl_seconds)


class RedisRateCache:
    def __init__(self, client, prefix: str = "fx:"):
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> "RedisRateCache":
        import redis

        return cls(redis.Redis.from_url(url, decode_responses=True))

    def get(self, key: str) -> Decimal | None:
        raw = self._client.get(self._prefix + key)
        return Decimal(raw) if raw is not None else None

    def set(self, key: str, value: Decimal, ttl_seconds: int) -> None:
        self._client.setex(self._prefix + key, ttl_seconds, str(value))


class ExchangeRateService:
    def __init__(
        self,
        cache: RateCache,
        ttl_seconds: int | None = None,
        api_url: str | None = None,
        timeout: int | None = None,
        session: requests.Session | None = None,
    ):
        self.cache = cache
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.FX_CACHE_TTL_SECONDS
        self.api_url = (api_url or settings.FX_API_URL).rstrip("/")
        self.timeout = timeout or settings.FX_TIMEOUT
        self.session = session or requests.Session()

    def _fetch(self, from_currency: str, to_currency: str) -> Decimal:
        r = self.session.get(f"{self.api_url}/{from_currency}", timeout=self.timeout)
        r.raise_for_status()
        data = r.json()
        rates = data.get("rates") or data.get("conversion_rates") or {}
        if to_currency not in rates:
            raise LookupError(f"no {from_currency}->{to_currency} rate in response")
        return Decimal(str(rates[to_currency]))

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """How many ``to_currency`` units one ``from_currency`` unit buys."""
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()
        if from_currency == to_currency:
            return Decimal(1)

        key = f"{from_currency}:{to_currency}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            rate = self._fetch(from_currency, to_currency)
        except (requests.RequestException, LookupError, ValueError) as e:
            rate = fallback_rate(from_currency, to_currency)
            if rate is None:
                logger.error("fx lookup %s failed with no fallback: %s", key, e)
                raise ExternalServiceError(f"Exchange rate {from_currency}->{to_currency} unavailable", field="currency") from e
            logger.warning("fx lookup %s failed (%s), using fallback rate %s", key, e, rate)
            return rate

        self.cache.set(key, rate, self.ttl_seconds)
        return rate


def build_rate_cache() -> RateCache:
    if settings.FX_CACHE_BACKEND == "redis":
        return RedisRateCache.from_url(settings.REDIS_URL)
    return InMemoryRateCache()


@lru_cache
def default_fx_service() -> ExchangeRateService:
    """Process-wide service so the rate cache and its TTL are shared between callers."""
    return ExchangeRateService(build_rate_cache())
