from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict


@dataclass(frozen=True)
class QuotaDecision:
    """Outcome of one admission check for an identity."""

    identity: str
    allowed: bool
    limit: int
    count: int
    window_start: datetime
    reset_at: datetime
    is_weekend: bool

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)

    def retry_after_seconds(self, now: datetime) -> int:
        return max(0, int((self.reset_at - now).total_seconds()))

    def to_headers(self, now: datetime) -> Dict[str, str]:
        """RateLimit-* headers plus the legacy X-RateLimit-* variants."""
        reset_in = self.retry_after_seconds(now)
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(reset_in),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at.timestamp())),
        }
        if not self.allowed:
            headers["Retry-After"] = str(reset_in)
        return headers
