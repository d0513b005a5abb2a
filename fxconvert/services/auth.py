"""Bearer-token identity extraction.

The bearer token is the user identifier itself; token issuance and
verification happen outside this service.
"""

from __future__ import annotations

from typing import Optional

ANONYMOUS_IDENTITY = "anonymous"


def extract_user_id(authorization: Optional[str]) -> Optional[str]:
    """Return the user id from ``Bearer <id>``, or None when missing or malformed."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    parts = authorization.split(" ")
    if len(parts) < 2:
        return None
    user_id = parts[1].strip()
    return user_id or None


def quota_identity(authorization: Optional[str]) -> str:
    return extract_user_id(authorization) or ANONYMOUS_IDENTITY
