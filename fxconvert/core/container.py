"""Composition root.

Builds one set of collaborators per application instance so cache and quota
state are owned by the app (and by each test's app) instead of living in
module globals.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from fxconvert.core.config import Settings
from fxconvert.db.dal import Database
from fxconvert.services.conversion import ConversionEngine
from fxconvert.services.quota import QuotaTracker, local_now
from fxconvert.services.rates.base import RateSource
from fxconvert.services.rates.cache import RateCache, utc_now
from fxconvert.services.rates.provider import RateProvider
from fxconvert.services.rates.sources import make_rate_source


@dataclass
class ServiceContainer:
    settings: Settings
    db: Database
    rate_source: RateSource
    rate_cache: RateCache
    rate_provider: RateProvider
    quota: QuotaTracker
    engine: ConversionEngine
    clock: Callable[[], datetime]


def _source_from_settings(settings: Settings) -> RateSource:
    if settings.rate_source == "coinbase":
        return make_rate_source(
            "coinbase",
            api_url=settings.coinbase_api_url,
            timeout=settings.http_timeout_seconds,
        )
    return make_rate_source(settings.rate_source)


def build_container(
    settings: Settings,
    rate_source: Optional[RateSource] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> ServiceContainer:
    """Wire the core. ``clock`` replaces both the cache clock and the quota clock."""
    source = rate_source or _source_from_settings(settings)
    cache_clock = clock or utc_now
    quota_clock = clock or local_now
    cache = RateCache(clock=cache_clock)
    provider = RateProvider(
        source,
        cache,
        ttl=timedelta(seconds=settings.rates_cache_ttl_seconds),
        coalesce=settings.rates_coalesce_fetches,
        clock=cache_clock,
    )
    quota = QuotaTracker(
        window=timedelta(seconds=settings.quota_window_seconds),
        weekday_limit=settings.quota_weekday_limit,
        weekend_limit=settings.quota_weekend_limit,
        clock=quota_clock,
    )
    db = Database(settings.db_path)  # type: ignore[arg-type]
    return ServiceContainer(
        settings=settings,
        db=db,
        rate_source=source,
        rate_cache=cache,
        rate_provider=provider,
        quota=quota,
        engine=ConversionEngine(provider, db),
        clock=quota_clock,
    )
