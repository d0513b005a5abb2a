"""Shared FastAPI dependencies resolving collaborators from the app state."""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, Request, Response, status

from fxconvert.core.container import ServiceContainer
from fxconvert.models.quota import QuotaDecision
from fxconvert.services.auth import extract_user_id, quota_identity


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def enforce_quota(
    request: Request,
    response: Response,
    authorization: Optional[str] = Header(None),
) -> QuotaDecision:
    """Admission control keyed by the bearer identity (or 'anonymous')."""
    services = get_services(request)
    now = services.clock()
    decision = services.quota.enforce(quota_identity(authorization), now)
    headers = decision.to_headers(now)
    response.headers.update(headers)
    # error responses built by exception handlers pick these up in the middleware
    request.state.rate_limit_headers = headers
    return decision


async def rate_limit_headers_middleware(request: Request, call_next):  # type: ignore
    """Copy the admission headers onto every response of a metered request."""
    response = await call_next(request)
    headers = getattr(request.state, "rate_limit_headers", None)
    if headers:
        for key, value in headers.items():
            response.headers.setdefault(key, value)
    return response


def require_user_id(authorization: Optional[str] = Header(None)) -> str:
    user_id = extract_user_id(authorization)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - User ID required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
