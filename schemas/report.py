from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from schemas.entry import Amount, EntryRecord


class ReportMode(str, Enum):
    monthly = "monthly"
    yearly = "yearly"
    custom = "custom"


class DateRange(BaseModel):
    start: dt.date
    end: dt.date


class TypeBreakdown(BaseModel):
    total: int = 0
    active: int = 0
    settled: int = 0
    invested: Amount = Decimal(0)
    earned: Amount = Decimal(0)


class ReportStats(BaseModel):
    total_loans: int = 0
    active_loans: int = 0
    settled_loans: int = 0
    total_invested: Amount = Decimal(0)
    total_earned: Amount = Decimal(0)
    # total_earned sums stored settled_amount, which settlement records as the
    # extra over principal; profit is therefore not a true net figure.
    profit: Amount = Decimal(0)
    loan_types: dict[str, TypeBreakdown] = Field(default_factory=dict)


class ReportResponse(BaseModel):
    mode: ReportMode
    range: DateRange
    stats: ReportStats
    entries: list[EntryRecord]
