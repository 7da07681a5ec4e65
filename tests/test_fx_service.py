from decimal import Decimal

import pytest
import requests

from app.core.config import settings
from app.core.errors import ExternalServiceError
from app.services.fx_service import (
    ExchangeRateService,
    InMemoryRateCache,
    RedisRateCache,
    build_rate_cache,
    default_fx_service,
    fallback_rate,
)

from helpers import StubSession


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl


def _service(session, cache=None, ttl=60):
    return ExchangeRateService(cache or InMemoryRateCache(), ttl_seconds=ttl, api_url="https://fx.test/latest/", session=session)


def test_rate_is_fetched_then_cached():
    session = StubSession({"IDR": 16250})
    fx = _service(session)

    assert fx.get_rate("usd", "idr") == Decimal("16250")
    assert fx.get_rate("USD", "IDR") == Decimal("16250")
    assert session.calls == ["https://fx.test/latest/USD"]


def test_cached_rate_expires_after_ttl():
    clock = Clock()
    session = StubSession({"IDR": 16250})
    fx = _service(session, InMemoryRateCache(clock=clock), ttl=60)

    fx.get_rate("USD", "IDR")
    clock.now = 59
    fx.get_rate("USD", "IDR")
    assert len(session.calls) == 1

    clock.now = 60
    fx.get_rate("USD", "IDR")
    assert len(session.calls) == 2


def test_same_currency_needs_no_lookup():
    session = StubSession()
    assert _service(session).get_rate("IDR", "IDR") == Decimal(1)
    assert session.calls == []


def test_lookup_failure_uses_fallback_without_caching_it():
    session = StubSession(error=requests.ConnectionError("offline"))
    fx = _service(session)

    assert fx.get_rate("USD", "IDR") == Decimal("16000")
    assert fx.get_rate("USD", "IDR") == Decimal("16000")
    assert len(session.calls) == 2


def test_missing_pair_in_response_uses_fallback():
    fx = _service(StubSession({"EUR": 0.92}))
    assert fx.get_rate("USD", "IDR") == Decimal("16000")


def test_inverse_fallback():
    fx = _service(StubSession(error=requests.Timeout("slow")))
    assert fx.get_rate("IDR", "USD") == Decimal(1) / Decimal("16000")
    assert fallback_rate("IDR", "USD") == Decimal(1) / Decimal("16000")


def test_no_fallback_for_pair_raises_external_service_error():
    fx = _service(StubSession(error=requests.ConnectionError("offline")))
    with pytest.raises(ExternalServiceError) as exc:
        fx.get_rate("EUR", "JPY")
    assert exc.value.status_code == 502
    assert exc.value.field == "currency"
    assert isinstance(exc.value.__cause__, requests.ConnectionError)
    assert fallback_rate("EUR", "JPY") is None


def test_expired_entry_removed_concurrently_is_a_miss():
    cache = InMemoryRateCache()

    def clock():
        # another caller evicts the entry between the lookup and the expiry check
        cache._data.pop("USD:IDR", None)
        return 100.0

    cache._data["USD:IDR"] = (Decimal("16250"), 50.0)
    cache._clock = clock

    assert cache.get("USD:IDR") is None
    assert "USD:IDR" not in cache._data


def test_default_fx_service_is_shared():
    assert default_fx_service() is default_fx_service()
    assert default_fx_service().ttl_seconds == settings.FX_CACHE_TTL_SECONDS


def test_redis_cache_uses_prefixed_keys_and_ttl():
    client = FakeRedis()
    fx = _service(StubSession({"IDR": 16250}), RedisRateCache(client), ttl=900)

    fx.get_rate("USD", "IDR")

    assert client.store == {"fx:USD:IDR": "16250"}
    assert client.ttls == {"fx:USD:IDR": 900}
    assert RedisRateCache(client).get("USD:IDR") == Decimal("16250")
    assert RedisRateCache(client).get("USD:EUR") is None


def test_default_cache_backend_is_memory():
    assert isinstance(build_rate_cache(), InMemoryRateCache)
