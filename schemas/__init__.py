from schemas.entry import (
    CustomerSuggestion,
    EntryCreate,
    EntryRecord,
    RenewalRecord,
    RenewRequest,
    SettledEntryRecord,
    SettleRequest,
)
from schemas.report import DateRange, ReportMode, ReportResponse, ReportStats, TypeBreakdown
from schemas.transfer import ImportEntry, ImportRenewal, ImportResult

__all__ = [
    "CustomerSuggestion",
    "EntryCreate",
    "EntryRecord",
    "RenewalRecord",
    "RenewRequest",
    "SettledEntryRecord",
    "SettleRequest",
    "DateRange",
    "ReportMode",
    "ReportResponse",
    "ReportStats",
    "TypeBreakdown",
    "ImportEntry",
    "ImportRenewal",
    "ImportResult",
]
