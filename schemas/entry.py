from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, Field, PlainSerializer, field_validator

ENTRY_TYPES = ("NR", "R", "Vyapari")
ENTRY_STATUSES = ("active", "settled")

EntryType = Literal["NR", "R", "Vyapari"]
EntryStatus = Literal["active", "settled"]


def amount_to_json(value: Decimal) -> int | float:
    """Whole amounts serialize as integers, the rest as floats."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Decimal internally; plain JSON number on the wire.
Amount = Annotated[Decimal, PlainSerializer(amount_to_json, return_type=float, when_used="json")]


class RenewalRecord(BaseModel):
    """One archived loan cycle."""
    date: dt.date
    amount: Amount
    settled_amount: Amount
    renewal_date: dt.date
    new_amount: Amount


class EntryRecord(BaseModel):
    id: int
    type: EntryType
    date: dt.date
    customer_name: str
    customer_address: str
    customer_mobile: Optional[str] = None
    items: str
    given_amount: Amount
    status: EntryStatus
    settled_amount: Optional[Amount] = None
    settled_date: Optional[dt.date] = None
    settlement_notes: Optional[str] = None
    renewal_history: list[RenewalRecord] = Field(default_factory=list)
    renewal_date: Optional[dt.date] = None
    renewal_amount: Optional[Amount] = None
    created_at: Optional[dt.datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("renewal_history", mode="before")
    @classmethod
    def history_none_to_empty(cls, v):
        return v or []


class SettledEntryRecord(EntryRecord):
    """Settled entry with the gross amount rebuilt from the stored profit delta."""
    total_amount: Amount


class EntryCreate(BaseModel):
    type: EntryType = "NR"
    date: dt.date = Field(default_factory=dt.date.today)
    customer_name: str
    customer_address: str
    customer_mobile: Optional[str] = None
    items: str
    given_amount: Decimal = Field(..., ge=0)

    @field_validator("customer_name", "customer_address", "items")
    @classmethod
    def required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("customer_mobile")
    @classmethod
    def blank_mobile_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class SettleRequest(BaseModel):
    total_amount: Decimal = Field(..., ge=0, description="Gross amount recovered")
    date: dt.date = Field(default_factory=dt.date.today)
    notes: Optional[str] = None


class RenewRequest(BaseModel):
    settlement_amount: Decimal = Field(..., ge=0, description="Gross amount recovered for the closing cycle")
    renewal_date: dt.date = Field(default_factory=dt.date.today)
    new_loan_amount: Decimal = Field(..., ge=0)


class CustomerSuggestion(BaseModel):
    customer_name: str
    customer_address: str
    customer_mobile: Optional[str] = None

    model_config = {"from_attributes": True}
