from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional, TypeVar

from schemas.entry import EntryRecord, amount_to_json

E = TypeVar("E", bound=EntryRecord)


def _amount_text(value: Optional[Decimal]) -> str:
    return "" if value is None else str(amount_to_json(value))


def matches_search(entry: EntryRecord, term: str, include_settled_amount: bool = False) -> bool:
    """Case-insensitive substring match over name, mobile, type and amount(s)."""
    if not term:
        return True
    needle = term.lower()
    if needle in entry.customer_name.lower():
        return True
    if entry.customer_mobile and needle in entry.customer_mobile.lower():
        return True
    if needle in entry.type.lower():
        return True
    if term in _amount_text(entry.given_amount):
        return True
    return include_settled_amount and term in _amount_text(entry.settled_amount)


def filter_entries(entries: Iterable[E], term: Optional[str], include_settled_amount: bool = False) -> list[E]:
    term = (term or "").strip()
    return [e for e in entries if matches_search(e, term, include_settled_amount)]
