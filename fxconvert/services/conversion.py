from __future__ import annotations

"""Currency conversion engine.

Given validated inputs, look up both rates, compute the converted amount and
the effective rate, and record the conversion. No rounding is applied: the
stored and returned values keep full float precision, formatting is the
caller's business.

Order of checks: unsupported currency (before any rate fetch), upstream
failure, missing rate, unusable rate, then persistence. A conversion that
cannot be recorded is reported as failed.
"""
import logging
import math
from dataclasses import dataclass
from typing import Protocol

from fxconvert.core.errors import (
    InvalidRate,
    PersistenceFailed,
    RateUnavailable,
    UnsupportedCurrency,
)
from fxconvert.models.constants import is_supported
from fxconvert.models.conversion import ConversionRecord

from .rates.cache import ExchangeRateSet

logger = logging.getLogger(__name__)


class SupportsRates(Protocol):
    def get_rates(self) -> ExchangeRateSet: ...


class ConversionRecorder(Protocol):
    def record(self, record: ConversionRecord) -> int: ...


@dataclass(frozen=True)
class ConversionResult:
    from_currency: str
    to_currency: str
    amount: float
    result: float
    rate: float

    def as_dict(self) -> dict:
        return {
            "from": self.from_currency,
            "to": self.to_currency,
            "amount": self.amount,
            "result": self.result,
            "rate": self.rate,
        }


class ConversionEngine:
    def __init__(self, rate_provider: SupportsRates, recorder: ConversionRecorder):
        self._rates = rate_provider
        self._recorder = recorder

    def convert(
        self, from_currency: str, to_currency: str, amount: float, user_id: str
    ) -> ConversionResult:
        if not user_id:
            raise ValueError("user_id must be a non-empty string")
        for code in (from_currency, to_currency):
            if not is_supported(code):
                logger.warning(
                    "conversion rejected for %s: unsupported currency %s (%s -> %s)",
                    user_id,
                    code,
                    from_currency,
                    to_currency,
                )
                raise UnsupportedCurrency(code)

        rates = self._rates.get_rates()  # RatesUnavailable propagates, logged at the fetch

        for code in (from_currency, to_currency):
            if code not in rates:
                logger.warning(
                    "conversion %s -> %s for %s failed: no rate for %s this cycle",
                    from_currency,
                    to_currency,
                    user_id,
                    code,
                )
                raise RateUnavailable(code)

        from_rate = rates[from_currency]
        to_rate = rates[to_currency]
        for code, value in ((from_currency, from_rate), (to_currency, to_rate)):
            if not math.isfinite(value) or value <= 0:
                logger.warning(
                    "conversion %s -> %s for %s failed: invalid rate %r for %s",
                    from_currency,
                    to_currency,
                    user_id,
                    value,
                    code,
                )
                raise InvalidRate(code, value)

        result = (amount * to_rate) / from_rate
        rate = to_rate / from_rate

        record = ConversionRecord(
            user_id=user_id,
            from_currency=from_currency,
            to_currency=to_currency,
            amount=amount,
            result=result,
            rate=rate,
        )
        try:
            self._recorder.record(record)
        except Exception as e:  # the reason is irrelevant to the caller
            logger.error(
                "failed to record conversion %s -> %s for %s: %s",
                from_currency,
                to_currency,
                user_id,
                e,
            )
            raise PersistenceFailed() from e

        logger.info(
            "Currency conversion completed: %s %s to %.2f %s",
            amount,
            from_currency,
            result,
            to_currency,
        )
        return ConversionResult(
            from_currency=from_currency,
            to_currency=to_currency,
            amount=amount,
            result=result,
            rate=rate,
        )
