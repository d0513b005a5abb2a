from __future__ import annotations

"""Single-slot rate cache.

Purpose:
    Hold the most recently fetched ExchangeRateSet together with its absolute
    expiry. Exactly one rate set is cached at a time; a put replaces both the
    rates and the expiry in one step.

Design:
    - CacheEntry pairs the rate set with ``expires_at``; an entry is valid only
      while ``now < expires_at``.
    - The slot is read and written under a lock, so a reader never sees rates
      from one fetch with another fetch's expiry.
    - An expired entry is left in place (not purged on read); it is simply
      reported as a miss until the next put or clear.
"""
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Callable, Dict, Iterator, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExchangeRateSet(Mapping):
    """Immutable mapping of currency code -> rate relative to the provider base."""

    __slots__ = ("_rates", "_fetched_at")

    def __init__(self, rates: Mapping[str, float], fetched_at: datetime):
        self._rates: Mapping[str, float] = MappingProxyType(dict(rates))
        self._fetched_at = fetched_at

    @property
    def fetched_at(self) -> datetime:
        return self._fetched_at

    def __getitem__(self, code: str) -> float:
        return self._rates[code]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rates)

    def __len__(self) -> int:
        return len(self._rates)

    def as_dict(self) -> Dict[str, float]:
        return dict(self._rates)

    def __repr__(self) -> str:
        return f"ExchangeRateSet({dict(self._rates)!r}, fetched_at={self._fetched_at.isoformat()})"


@dataclass(frozen=True)
class CacheEntry:
    rates: ExchangeRateSet
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


class RateCache:
    """Cache holding one ExchangeRateSet with a TTL-bound expiry."""

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock
        self._lock = threading.Lock()
        self._entry: Optional[CacheEntry] = None

    def get(self) -> Optional[ExchangeRateSet]:
        """Return the cached rates when present and unexpired, else None."""
        now = self._clock()
        with self._lock:
            entry = self._entry
        if entry is None or not entry.is_valid(now):
            return None
        return entry.rates

    def put(self, rates: ExchangeRateSet, ttl: timedelta) -> CacheEntry:
        entry = CacheEntry(rates=rates, expires_at=self._clock() + ttl)
        with self._lock:
            self._entry = entry
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entry = None

    def peek(self) -> Optional[CacheEntry]:
        """Current entry regardless of expiry (diagnostics / tests)."""
        with self._lock:
            return self._entry
