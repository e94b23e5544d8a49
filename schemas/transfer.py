"""
Schema for imported entry documents.

Typing is strict: amounts must be JSON numbers, text fields JSON strings and
dates ISO date strings. ``id`` and ``created_at`` are ignored so exported
files can be re-imported.
"""
from __future__ import annotations

import datetime as dt
import math
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, StrictStr, field_validator, model_validator

from schemas.entry import EntryStatus, EntryType


def _require_number(v):
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ValueError("must be a number")
    # json.loads accepts NaN and Infinity literals; they are not amounts.
    if isinstance(v, float) and not math.isfinite(v):
        raise ValueError("must be a finite number")
    return v


Number = Annotated[float, BeforeValidator(_require_number)]


def _require_date_string(v):
    if v is not None and not isinstance(v, str):
        raise ValueError("must be an ISO date string (YYYY-MM-DD)")
    return v


def _require_non_negative(v):
    if v is not None and v < 0:
        raise ValueError("must be greater than or equal to 0")
    return v


class ImportRenewal(BaseModel):
    date: dt.date
    amount: Number
    settled_amount: Number
    renewal_date: dt.date
    new_amount: Number

    @field_validator("date", "renewal_date", mode="before")
    @classmethod
    def check_date_strings(cls, v):
        return _require_date_string(v)


class ImportEntry(BaseModel):
    type: EntryType
    date: dt.date
    customer_name: StrictStr
    customer_address: StrictStr
    customer_mobile: Optional[StrictStr] = None
    items: StrictStr
    given_amount: Number
    status: EntryStatus
    settled_amount: Optional[Number] = None
    settled_date: Optional[dt.date] = None
    settlement_notes: Optional[StrictStr] = None
    renewal_history: Optional[list[ImportRenewal]] = None
    renewal_date: Optional[dt.date] = None
    renewal_amount: Optional[Number] = None

    model_config = {"extra": "ignore"}

    @field_validator("date", "settled_date", "renewal_date", mode="before")
    @classmethod
    def check_date_strings(cls, v):
        return _require_date_string(v)

    @field_validator("given_amount")
    @classmethod
    def check_given_amount(cls, v):
        return _require_non_negative(v)

    @model_validator(mode="after")
    def check_pairs(self) -> "ImportEntry":
        has_settlement = (self.settled_amount is not None, self.settled_date is not None)
        if self.status == "settled" and has_settlement != (True, True):
            raise ValueError("settled entries require settled_amount and settled_date")
        if self.status == "active" and any(has_settlement):
            raise ValueError("active entries must not carry settled_amount or settled_date")
        if (self.renewal_date is None) != (self.renewal_amount is None):
            raise ValueError("renewal_date and renewal_amount must be given together")
        return self


class ImportResult(BaseModel):
    imported: int
