import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import pytest

# fxconvert.main builds a module-level app from the environment on import;
# point it at a throwaway directory before anything imports it.
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="fxconvert-tests-"))
os.environ.setdefault("RATE_SOURCE", "static")

from fastapi.testclient import TestClient  # noqa: E402

from fxconvert.core.config import Settings  # noqa: E402
from fxconvert.main import create_app  # noqa: E402
from fxconvert.services.rates.base import RateFetchError, RateSource  # noqa: E402

# Wednesday / Saturday, noon UTC
WEDNESDAY = datetime(2025, 5, 7, 12, 0, tzinfo=timezone.utc)
SATURDAY = datetime(2025, 5, 10, 12, 0, tzinfo=timezone.utc)

DEFAULT_RATES: Dict[str, str] = {
    "USD": "1.0",
    "EUR": "0.9234",
    "BTC": "0.0000105",
    "ETH": "0.00031",
    "GBP": "0.79",
}


class FakeClock:
    def __init__(self, now: datetime = WEDNESDAY):
        self.now = now
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self.now

    def advance(self, **kwargs) -> datetime:
        with self._lock:
            self.now = self.now + timedelta(**kwargs)
            return self.now

    def set(self, moment: datetime) -> None:
        with self._lock:
            self.now = moment


class FakeRateSource(RateSource):
    name = "fake"

    def __init__(self, rates: Optional[Dict[str, str]] = None):
        self.rates = dict(DEFAULT_RATES if rates is None else rates)
        self.calls = 0
        self.error: Optional[Exception] = None
        self._lock = threading.Lock()

    def fetch(self) -> Dict[str, str]:
        with self._lock:
            self.calls += 1
        if self.error is not None:
            raise self.error
        return dict(self.rates)

    def fail_with(self, error: Optional[Exception] = None) -> None:
        self.error = error or RateFetchError("upstream down")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_source() -> FakeRateSource:
    return FakeRateSource()


@pytest.fixture
def settings(tmp_path) -> Settings:
    s = Settings(
        data_dir=tmp_path,
        db_filename="test.sqlite3",
        rate_source="static",
        quota_weekday_limit=3,
        quota_weekend_limit=5,
    )
    s.init_post_load()
    return s


@pytest.fixture
def app(settings, rate_source, clock):
    return create_app(settings_override=settings, rate_source=rate_source, clock=clock)


@pytest.fixture
def services(app):
    return app.state.services


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def auth(user_id: str = "u1") -> Dict[str, str]:
    return {"Authorization": f"Bearer {user_id}"}
