from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import CURRENCY_CODE_MAX_LENGTH, CURRENCY_CODE_MIN_LENGTH


class ConversionQuery(BaseModel):
    """Validated /api/convert query: currency codes upper-cased, amount positive."""

    from_currency: str = Field(
        ..., min_length=CURRENCY_CODE_MIN_LENGTH, max_length=CURRENCY_CODE_MAX_LENGTH
    )
    to_currency: str = Field(
        ..., min_length=CURRENCY_CODE_MIN_LENGTH, max_length=CURRENCY_CODE_MAX_LENGTH
    )
    amount: float = Field(..., gt=0)

    @field_validator("from_currency", "to_currency", mode="before")
    @classmethod
    def upper_code(cls, v: str) -> str:
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("amount")
    @classmethod
    def finite_amount(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Amount must be a finite number")
        return v


class ConversionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_currency: str = Field(..., alias="from")
    to_currency: str = Field(..., alias="to")
    amount: float
    result: float
    rate: float


class ConversionRecord(BaseModel):
    """Row shape handed to the persistence layer for every completed conversion."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    from_currency: str
    to_currency: str
    amount: float
    result: float
    rate: float
    id: Optional[int] = None
    timestamp: Optional[datetime] = None  # assigned by the database
