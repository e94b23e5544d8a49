"""
Report date ranges and aggregate statistics over a set of entries.
"""
from __future__ import annotations

import calendar
import datetime as dt
from typing import Iterable, Optional

from exceptions import BusinessRuleError
from repositories.entries import EntryRepository
from schemas.entry import EntryRecord
from schemas.report import DateRange, ReportMode, ReportResponse, ReportStats, TypeBreakdown


def resolve_range(
    mode: ReportMode,
    today: dt.date,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
) -> DateRange:
    """Monthly and yearly ranges are relative to ``today``; custom uses the caller's bounds."""
    if mode == ReportMode.monthly:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return DateRange(start=today.replace(day=1), end=today.replace(day=last_day))
    if mode == ReportMode.yearly:
        return DateRange(start=dt.date(today.year, 1, 1), end=dt.date(today.year, 12, 31))
    if start is None or end is None:
        raise BusinessRuleError("Custom range requires both start and end dates")
    if start > end:
        raise BusinessRuleError("Start date cannot be after end date")
    return DateRange(start=start, end=end)


def aggregate(entries: Iterable[EntryRecord]) -> ReportStats:
    stats = ReportStats()
    for entry in entries:
        bucket = stats.loan_types.setdefault(entry.type, TypeBreakdown())

        stats.total_loans += 1
        stats.total_invested += entry.given_amount
        bucket.total += 1
        bucket.invested += entry.given_amount

        if entry.status == "active":
            stats.active_loans += 1
            bucket.active += 1
        elif entry.status == "settled":
            earned = entry.settled_amount or 0
            stats.settled_loans += 1
            bucket.settled += 1
            stats.total_earned += earned
            bucket.earned += earned

    stats.profit = stats.total_earned - stats.total_invested
    return stats


async def build_report(
    repository: EntryRepository,
    mode: ReportMode,
    today: dt.date,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
) -> ReportResponse:
    date_range = resolve_range(mode, today, start, end)
    entries = await repository.list_between(date_range.start, date_range.end)
    return ReportResponse(mode=mode, range=date_range, stats=aggregate(entries), entries=entries)
