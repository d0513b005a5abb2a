from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from fxconvert.core.logging import user_id_ctx
from fxconvert.models.constants import (
    CURRENCY_CODE_MAX_LENGTH,
    CURRENCY_CODE_MIN_LENGTH,
    SUPPORTED_CURRENCIES,
)
from fxconvert.models.conversion import ConversionOut, ConversionQuery
from fxconvert.routers.deps import enforce_quota, get_services, require_user_id

"""Conversion router.

Endpoint:
    - GET /api/convert?from=USD&to=EUR&amount=100  (Authorization: Bearer <userId>)

Quota admission runs before authentication, so unauthenticated calls count
against the shared 'anonymous' identity. Error kinds raised by the engine are
mapped to status codes by the app-level ConversionError handler.
"""

router = APIRouter(prefix="/api", tags=["conversion"])

_CODES = ", ".join(SUPPORTED_CURRENCIES)


def conversion_query(
    from_currency: str = Query(
        ...,
        alias="from",
        min_length=CURRENCY_CODE_MIN_LENGTH,
        max_length=CURRENCY_CODE_MAX_LENGTH,
        description=f"Source currency code ({_CODES})",
        examples=["USD"],
    ),
    to_currency: str = Query(
        ...,
        alias="to",
        min_length=CURRENCY_CODE_MIN_LENGTH,
        max_length=CURRENCY_CODE_MAX_LENGTH,
        description=f"Target currency code ({_CODES})",
        examples=["EUR"],
    ),
    amount: float = Query(
        ..., gt=0, allow_inf_nan=False, description="Amount to convert", examples=[100]
    ),
) -> ConversionQuery:
    return ConversionQuery(
        from_currency=from_currency, to_currency=to_currency, amount=amount
    )


@router.get(
    "/convert",
    response_model=ConversionOut,
    summary="Convert an amount between two supported currencies",
    dependencies=[Depends(enforce_quota)],
    responses={
        400: {"description": "Invalid parameters, unsupported currency or unavailable rate"},
        401: {"description": "Missing or invalid bearer identity"},
        429: {"description": "Daily request limit exceeded"},
        500: {"description": "Rates could not be fetched or the conversion not recorded"},
    },
)
def convert(
    request: Request,
    query: ConversionQuery = Depends(conversion_query),
    user_id: str = Depends(require_user_id),
) -> ConversionOut:
    # sync endpoint: runs in the threadpool, so the blocking upstream fetch
    # and sqlite write don't stall the event loop
    token = user_id_ctx.set(user_id)
    try:
        services = get_services(request)
        result = services.engine.convert(
            query.from_currency, query.to_currency, query.amount, user_id
        )
    finally:
        user_id_ctx.reset(token)
    return ConversionOut(**result.as_dict())
