"""Pydantic / dataclass models for the conversion service."""

from .constants import (
    SUPPORTED_CURRENCIES,
    SUPPORTED_CRYPTOCURRENCIES,
    SUPPORTED_FIAT_CURRENCIES,
)  # re-export
from .conversion import ConversionOut, ConversionQuery, ConversionRecord
from .quota import QuotaDecision

__all__ = [
    "SUPPORTED_CURRENCIES",
    "SUPPORTED_CRYPTOCURRENCIES",
    "SUPPORTED_FIAT_CURRENCIES",
    "ConversionOut",
    "ConversionQuery",
    "ConversionRecord",
    "QuotaDecision",
]
