"""Supported currency lists.

A currency listed here is recognized by the service whether or not the
upstream provider currently returns a rate for it.
"""

from typing import Tuple

SUPPORTED_FIAT_CURRENCIES: Tuple[str, ...] = ("USD", "EUR")
SUPPORTED_CRYPTOCURRENCIES: Tuple[str, ...] = ("BTC", "ETH")
SUPPORTED_CURRENCIES: Tuple[str, ...] = (
    SUPPORTED_FIAT_CURRENCIES + SUPPORTED_CRYPTOCURRENCIES
)

CURRENCY_CODE_MIN_LENGTH = 3
CURRENCY_CODE_MAX_LENGTH = 4


def is_supported(code: str) -> bool:
    return code in SUPPORTED_CURRENCIES
