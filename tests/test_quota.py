import threading
from datetime import datetime, timedelta, timezone

import pytest

from fxconvert.core.errors import ErrorKind, QuotaExceeded
from fxconvert.services.quota import QuotaTracker, is_weekend

from conftest import SATURDAY, WEDNESDAY

FRIDAY_LATE = datetime(2025, 5, 9, 23, 0, tzinfo=timezone.utc)
SUNDAY = datetime(2025, 5, 11, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def tracker():
    return QuotaTracker()


def _admit_n(tracker, identity, n, now):
    return [tracker.admit(identity, now) for _ in range(n)]


def test_weekend_detection():
    assert not is_weekend(WEDNESDAY)
    assert not is_weekend(FRIDAY_LATE)
    assert is_weekend(SATURDAY)
    assert is_weekend(SUNDAY)


def test_weekday_cap_is_100(tracker):
    decisions = _admit_n(tracker, "u1", 101, WEDNESDAY)

    assert decisions[99].allowed is True
    assert decisions[99].remaining == 0
    assert decisions[100].allowed is False
    assert decisions[100].limit == 100


def test_weekend_cap_is_200(tracker):
    decisions = _admit_n(tracker, "u1", 201, SATURDAY)

    assert decisions[199].allowed is True
    assert decisions[200].allowed is False
    assert decisions[200].limit == 200
    assert decisions[200].is_weekend is True


def test_denied_requests_are_not_counted(tracker):
    _admit_n(tracker, "u1", 105, WEDNESDAY)
    assert tracker.usage("u1") == 100


def test_window_resets_after_24_hours(tracker):
    _admit_n(tracker, "u1", 101, WEDNESDAY)

    almost = tracker.admit("u1", WEDNESDAY + timedelta(hours=23, minutes=59))
    assert almost.allowed is False

    fresh = tracker.admit("u1", WEDNESDAY + timedelta(hours=24))
    assert fresh.allowed is True
    assert fresh.count == 1
    assert fresh.window_start == WEDNESDAY + timedelta(hours=24)


def test_cap_follows_admission_day_not_window_start(tracker):
    _admit_n(tracker, "u1", 100, FRIDAY_LATE)
    assert tracker.admit("u1", FRIDAY_LATE).allowed is False

    # same window, now Saturday: weekend cap applies
    saturday_morning = FRIDAY_LATE + timedelta(hours=2)
    decision = tracker.admit("u1", saturday_morning)
    assert decision.allowed is True
    assert decision.limit == 200
    assert decision.window_start == FRIDAY_LATE


def test_weekend_window_drops_to_weekday_cap_on_monday(tracker):
    sunday_late = datetime(2025, 5, 11, 23, 0, tzinfo=timezone.utc)
    _admit_n(tracker, "u1", 150, sunday_late)

    monday = sunday_late + timedelta(hours=2)
    decision = tracker.admit("u1", monday)
    assert decision.allowed is False
    assert decision.limit == 100
    assert decision.count == 150


def test_identities_are_independent(tracker):
    _admit_n(tracker, "u1", 100, WEDNESDAY)
    assert tracker.admit("u1", WEDNESDAY).allowed is False
    assert tracker.admit("u2", WEDNESDAY).allowed is True
    assert tracker.usage("u2") == 1
    assert tracker.usage("nobody") is None


def test_enforce_raises_quota_exceeded_with_cap():
    tracker = QuotaTracker(weekday_limit=2, weekend_limit=4)
    tracker.enforce("u1", WEDNESDAY)
    tracker.enforce("u1", WEDNESDAY)

    with pytest.raises(QuotaExceeded) as excinfo:
        tracker.enforce("u1", WEDNESDAY)

    err = excinfo.value
    assert err.kind is ErrorKind.QUOTA_EXCEEDED
    assert err.limit == 2
    assert err.status_code == 429
    assert "2 requests per workday" in err.message
    assert err.headers()["RateLimit-Remaining"] == "0"
    assert "Retry-After" in err.headers()


def test_weekend_message_mentions_weekend_day():
    tracker = QuotaTracker(weekday_limit=1, weekend_limit=1)
    tracker.enforce("u1", SATURDAY)
    with pytest.raises(QuotaExceeded, match="per weekend day"):
        tracker.enforce("u1", SATURDAY)


def test_decision_headers(tracker):
    decision = tracker.admit("u1", WEDNESDAY)
    headers = decision.to_headers(WEDNESDAY)

    assert headers["RateLimit-Limit"] == "100"
    assert headers["RateLimit-Remaining"] == "99"
    assert headers["RateLimit-Reset"] == str(24 * 3600)
    assert headers["X-RateLimit-Reset"] == str(
        int((WEDNESDAY + timedelta(hours=24)).timestamp())
    )


def test_concurrent_admissions_for_one_identity_respect_cap(tracker):
    allowed = []
    lock = threading.Lock()

    def hit():
        decision = tracker.admit("u1", WEDNESDAY)
        with lock:
            allowed.append(decision.allowed)

    threads = [threading.Thread(target=hit) for _ in range(150)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert allowed.count(True) == 100
    assert tracker.usage("u1") == 100


def test_uses_clock_when_now_omitted():
    tracker = QuotaTracker(clock=lambda: SATURDAY)
    assert tracker.admit("u1").limit == 200


def test_reset_forgets_all_windows(tracker):
    _admit_n(tracker, "u1", 100, WEDNESDAY)
    tracker.reset()
    assert tracker.usage("u1") is None
    assert tracker.admit("u1", WEDNESDAY).allowed is True


def test_rejects_empty_identity(tracker):
    with pytest.raises(ValueError):
        tracker.admit("", WEDNESDAY)
