from __future__ import annotations

"""Concrete rate sources and factory.

'coinbase' fetches the public Coinbase exchange-rates endpoint (base USD, no key
required). 'static' serves fixed placeholder values for local runs without
network access.
"""
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from fxconvert.services.http_client import HttpError, get_json

from .base import RateFetchError, RateSource

logger = logging.getLogger(__name__)

_STATIC_RATES: Dict[str, str] = {
    "USD": "1.0",
    "EUR": "0.9234",
    "BTC": "0.0000105",
    "ETH": "0.00031",
}


class StaticRateSource(RateSource):
    name = "static"

    def __init__(self, rates: Optional[Mapping[str, str]] = None):
        self._rates = dict(rates if rates is not None else _STATIC_RATES)

    def fetch(self) -> Dict[str, str]:
        return dict(self._rates)


class CoinbaseRateSource(RateSource):
    """GET {api_url}/exchange-rates -> {"data": {"currency": "USD", "rates": {...}}}."""

    name = "coinbase"

    def __init__(
        self,
        api_url: str = "https://api.coinbase.com/v2",
        timeout: float = 5.0,
        fetch_json: Callable[..., Dict[str, Any]] = get_json,
    ):
        self._url = f"{api_url.rstrip('/')}/exchange-rates"
        self._timeout = timeout
        self._fetch_json = fetch_json

    def fetch(self) -> Dict[str, str]:
        try:
            payload = self._fetch_json(self._url, timeout=self._timeout)
        except HttpError as e:
            raise RateFetchError(str(e)) from e
        try:
            rates = payload["data"]["rates"]
        except (KeyError, TypeError) as e:
            raise RateFetchError(f"Malformed exchange-rates response: missing {e}") from e
        if not isinstance(rates, dict):
            raise RateFetchError("Malformed exchange-rates response: rates is not an object")
        logger.debug("fetched %d raw rates from %s", len(rates), self._url)
        return {str(k).upper(): str(v) for k, v in rates.items()}


_SOURCE_REGISTRY = {
    "coinbase": CoinbaseRateSource,
    "static": StaticRateSource,
}


def make_rate_source(kind: str, **kwargs: Any) -> RateSource:
    cls = _SOURCE_REGISTRY.get(kind)
    if not cls:
        raise ValueError(f"Unknown rate source kind '{kind}'")
    return cls(**kwargs)
