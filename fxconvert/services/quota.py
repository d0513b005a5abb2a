"""Per-identity daily request quota.

Each identity owns one window: an admitted-request count and the window start.
A window older than the window length is reset on the next admission check.
The cap is chosen from the day of week of the admission moment (not of the
window start), 100 on weekdays and 200 on Saturday/Sunday, so a window that
spans Friday -> Saturday sees the cap change part way through.

Windows are updated under a per-identity lock; a short map lock only guards
first-seen inserts. State is process-local and lost on restart.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from fxconvert.core.errors import QuotaExceeded
from fxconvert.models.quota import QuotaDecision

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = timedelta(hours=24)
WEEKDAY_LIMIT = 100
WEEKEND_LIMIT = 200
# datetime.weekday(): Monday=0 .. Sunday=6
WEEKEND_DAYS = frozenset({5, 6})


def local_now() -> datetime:
    return datetime.now().astimezone()


def is_weekend(moment: datetime) -> bool:
    return moment.weekday() in WEEKEND_DAYS


@dataclass
class _QuotaWindow:
    start: datetime
    count: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class QuotaTracker:
    def __init__(
        self,
        window: timedelta = DEFAULT_WINDOW,
        weekday_limit: int = WEEKDAY_LIMIT,
        weekend_limit: int = WEEKEND_LIMIT,
        clock: Callable[[], datetime] = local_now,
    ):
        if window <= timedelta(0):
            raise ValueError("quota window must be positive")
        if weekday_limit < 0 or weekend_limit < 0:
            raise ValueError("quota limits cannot be negative")
        self._window = window
        self._weekday_limit = weekday_limit
        self._weekend_limit = weekend_limit
        self._clock = clock
        self._windows: Dict[str, _QuotaWindow] = {}
        self._map_lock = threading.Lock()

    def limit_for(self, moment: datetime) -> int:
        return self._weekend_limit if is_weekend(moment) else self._weekday_limit

    def _window_for(self, identity: str, now: datetime) -> _QuotaWindow:
        with self._map_lock:
            win = self._windows.get(identity)
            if win is None:
                win = _QuotaWindow(start=now)
                self._windows[identity] = win
            return win

    def admit(self, identity: str, now: Optional[datetime] = None) -> QuotaDecision:
        """Count one request for ``identity`` if under the cap.

        A denied request is not counted.
        """
        if not identity:
            raise ValueError("identity must be a non-empty string")
        now = now if now is not None else self._clock()
        win = self._window_for(identity, now)
        with win.lock:
            if now - win.start >= self._window:
                win.start = now
                win.count = 0
            weekend = is_weekend(now)
            limit = self.limit_for(now)
            allowed = win.count < limit
            if allowed:
                win.count += 1
            return QuotaDecision(
                identity=identity,
                allowed=allowed,
                limit=limit,
                count=win.count,
                window_start=win.start,
                reset_at=win.start + self._window,
                is_weekend=weekend,
            )

    def enforce(self, identity: str, now: Optional[datetime] = None) -> QuotaDecision:
        """Like admit(), but raise QuotaExceeded on deny."""
        now = now if now is not None else self._clock()
        decision = self.admit(identity, now)
        if not decision.allowed:
            logger.warning(
                "quota exceeded for %s: %d requests per %s",
                identity,
                decision.limit,
                "weekend day" if decision.is_weekend else "workday",
            )
            raise QuotaExceeded(
                limit=decision.limit,
                is_weekend=decision.is_weekend,
                reset_at=decision.reset_at,
                rate_limit_headers=decision.to_headers(now),
            )
        return decision

    def usage(self, identity: str) -> Optional[int]:
        """Admitted count in the identity's current window (None if never seen)."""
        with self._map_lock:
            win = self._windows.get(identity)
        if win is None:
            return None
        with win.lock:
            return win.count

    def reset(self) -> None:
        with self._map_lock:
            self._windows.clear()
