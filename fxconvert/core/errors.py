"""Error taxonomy for the conversion core plus FastAPI exception handlers.

Each failure the core can surface is a ``ConversionError`` subclass tagged
with an ``ErrorKind``. Callers branch on the type (or ``kind``), never on the
message text. The HTTP status for each kind lives here so the routers stay
thin.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("fxconvert.errors")


class ErrorKind(str, Enum):
    UNSUPPORTED_CURRENCY = "unsupported_currency"
    RATE_UNAVAILABLE = "rate_unavailable"
    INVALID_RATE = "invalid_rate"
    RATES_UNAVAILABLE = "rates_unavailable"
    PERSISTENCE_FAILED = "persistence_failed"
    QUOTA_EXCEEDED = "quota_exceeded"


class ConversionError(Exception):
    kind: ErrorKind
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def headers(self) -> Dict[str, str]:
        return {}


class UnsupportedCurrency(ConversionError):
    kind = ErrorKind.UNSUPPORTED_CURRENCY
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, currency: str):
        super().__init__(f"Invalid currency code: {currency}")
        self.currency = currency


class RateUnavailable(ConversionError):
    kind = ErrorKind.RATE_UNAVAILABLE
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, currency: str):
        super().__init__(
            f"Exchange rate not available for the selected currency: {currency}"
        )
        self.currency = currency


class InvalidRate(ConversionError):
    kind = ErrorKind.INVALID_RATE
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, currency: str, value: float):
        super().__init__(f"Invalid exchange rate for {currency}: {value!r}")
        self.currency = currency
        self.value = value


class RatesUnavailable(ConversionError):
    kind = ErrorKind.RATES_UNAVAILABLE
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Failed to fetch exchange rates"):
        super().__init__(message)


class PersistenceFailed(ConversionError):
    kind = ErrorKind.PERSISTENCE_FAILED
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Failed to record conversion"):
        super().__init__(message)


class QuotaExceeded(ConversionError):
    kind = ErrorKind.QUOTA_EXCEEDED
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(
        self,
        limit: int,
        is_weekend: bool,
        reset_at: Optional[datetime] = None,
        rate_limit_headers: Optional[Dict[str, str]] = None,
    ):
        period = "weekend day" if is_weekend else "workday"
        super().__init__(f"Daily request limit exceeded ({limit} requests per {period})")
        self.limit = limit
        self.is_weekend = is_weekend
        self.reset_at = reset_at
        self._headers = dict(rate_limit_headers or {})

    def headers(self) -> Dict[str, str]:
        return dict(self._headers)


# HTTP handlers ----------------------------------------------------


def conversion_error_handler(request: Request, exc: ConversionError):  # type: ignore
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind.value, "detail": exc.message},
        headers=exc.headers() or None,
    )


_HTTP_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
}


def http_error_handler(request: Request, exc: StarletteHTTPException):  # type: ignore
    code = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")
    detail = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and detail == "Not Found":
        detail = f"No route for {request.method} {request.url.path}"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": code, "detail": detail},
        headers=getattr(exc, "headers", None),
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    logger.info("validation error on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "validation_error",
            "detail": [
                {"path": ".".join(str(p) for p in e.get("loc", ())), "message": e.get("msg")}
                for e in exc.errors()
            ],
        },
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
