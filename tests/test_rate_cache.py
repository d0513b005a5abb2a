import threading
from datetime import timedelta

import pytest

from fxconvert.services.rates.cache import ExchangeRateSet, RateCache

from conftest import FakeClock


def _rates(clock, **values):
    return ExchangeRateSet(values, fetched_at=clock())


def test_empty_cache_is_a_miss():
    cache = RateCache(clock=FakeClock())
    assert cache.get() is None
    assert cache.peek() is None


def test_put_then_get_returns_same_rates(clock):
    cache = RateCache(clock=clock)
    rates = _rates(clock, USD=1.0, EUR=0.9)
    entry = cache.put(rates, timedelta(minutes=5))

    assert cache.get() is rates
    assert entry.expires_at == clock() + timedelta(minutes=5)


def test_entry_expires_strictly_at_expiry(clock):
    cache = RateCache(clock=clock)
    cache.put(_rates(clock, USD=1.0), timedelta(minutes=5))

    clock.advance(minutes=4, seconds=59)
    assert cache.get() is not None

    clock.advance(seconds=1)
    assert cache.get() is None
    # expired entry is kept until replaced or cleared
    assert cache.peek() is not None


def test_put_replaces_rates_and_expiry(clock):
    cache = RateCache(clock=clock)
    cache.put(_rates(clock, USD=1.0), timedelta(minutes=5))
    clock.advance(minutes=4)
    newer = _rates(clock, USD=1.0, EUR=0.8)
    cache.put(newer, timedelta(minutes=5))

    clock.advance(minutes=4)
    assert cache.get() is newer


def test_clear_removes_entry(clock):
    cache = RateCache(clock=clock)
    cache.put(_rates(clock, USD=1.0), timedelta(minutes=5))
    cache.clear()
    assert cache.get() is None
    assert cache.peek() is None


def test_rate_set_is_immutable(clock):
    source = {"USD": 1.0, "EUR": 0.9}
    rates = ExchangeRateSet(source, fetched_at=clock())
    source["EUR"] = 2.0

    assert rates["EUR"] == 0.9
    assert "BTC" not in rates
    with pytest.raises(TypeError):
        rates["EUR"] = 1.5  # type: ignore[index]
    assert rates.as_dict() == {"USD": 1.0, "EUR": 0.9}


def test_concurrent_puts_never_pair_rates_with_foreign_expiry(clock):
    cache = RateCache(clock=clock)
    errors = []

    def writer(i: int):
        for _ in range(50):
            cache.put(_rates(clock, USD=float(i)), timedelta(seconds=i))

    def reader():
        for _ in range(200):
            entry = cache.peek()
            if entry is None:
                continue
            ttl = (entry.expires_at - clock()).total_seconds()
            if ttl != entry.rates["USD"]:
                errors.append((ttl, entry.rates["USD"]))

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(1, 9)]
    threads += [threading.Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
