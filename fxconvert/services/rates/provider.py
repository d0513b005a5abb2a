from __future__ import annotations

"""Rate provider: cache-first access to the supported currencies' rates."""
import logging
import math
import threading
from datetime import timedelta
from typing import Dict, Iterable, Mapping

from fxconvert.core.errors import RatesUnavailable
from fxconvert.models.constants import SUPPORTED_CURRENCIES

from .base import RateSource
from .cache import Clock, ExchangeRateSet, RateCache, utc_now

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=5)


def filter_supported(
    raw: Mapping[str, str], supported: Iterable[str] = SUPPORTED_CURRENCIES
) -> Dict[str, float]:
    """Keep only supported currencies, parsed as floats.

    Supported codes missing from ``raw`` are left out and logged; they are
    never defaulted. An unparseable value is kept as NaN so the engine reports
    it as an invalid rate rather than a missing one.
    """
    filtered: Dict[str, float] = {}
    for code in supported:
        value = raw.get(code)
        if value is None or value == "":
            logger.warning(
                "Exchange rate for supported currency %s not found in API response", code
            )
            continue
        try:
            filtered[code] = float(value)
        except (TypeError, ValueError):
            logger.warning(
                "Exchange rate for supported currency %s is malformed: %r", code, value
            )
            filtered[code] = math.nan
            continue
        if not math.isfinite(filtered[code]) or filtered[code] <= 0:
            # kept; the conversion engine rejects it as an invalid rate
            logger.warning("Exchange rate for %s is not usable: %r", code, value)
    return filtered


class RateProvider:
    """Serve rates from RateCache when fresh, otherwise fetch, filter and refill.

    A failed fetch raises RatesUnavailable and leaves the cache untouched; the
    next call retries. With ``coalesce=True`` concurrent misses share a single
    upstream call: the first caller fetches while the others wait on the fill
    lock and then re-read the cache.
    """

    def __init__(
        self,
        source: RateSource,
        cache: RateCache,
        ttl: timedelta = DEFAULT_TTL,
        supported: Iterable[str] = SUPPORTED_CURRENCIES,
        coalesce: bool = True,
        clock: Clock = utc_now,
    ):
        self._source = source
        self._cache = cache
        self._ttl = ttl
        self._supported = tuple(supported)
        self._coalesce = coalesce
        self._clock = clock
        self._fill_lock = threading.Lock()

    def get_rates(self) -> ExchangeRateSet:
        cached = self._cache.get()
        if cached is not None:
            logger.debug("Using cached exchange rates")
            return cached
        if not self._coalesce:
            return self._refresh()
        with self._fill_lock:
            # another request may have filled the cache while we waited
            cached = self._cache.get()
            if cached is not None:
                logger.debug("Using exchange rates filled by a concurrent request")
                return cached
            return self._refresh()

    def _refresh(self) -> ExchangeRateSet:
        logger.info("Fetching fresh exchange rates from %s source", self._source.name)
        try:
            raw = self._source.fetch()
        except Exception as e:  # any upstream failure counts the same
            logger.error("Error fetching exchange rates: %s", e)
            raise RatesUnavailable() from e
        rates = ExchangeRateSet(
            filter_supported(raw, self._supported), fetched_at=self._clock()
        )
        self._cache.put(rates, self._ttl)
        return rates
