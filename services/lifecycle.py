"""
Loan lifecycle rules.

Each function returns the exact column values to write for one transition,
so both pair invariants (settled_amount/settled_date present iff settled;
renewal_date/renewal_amount both or neither) hold on every write.
The caller supplies the expected prior status as the write precondition.
"""
from __future__ import annotations

from typing import Any

from exceptions import BusinessRuleError, InvalidEntryStateError
from schemas.entry import EntryCreate, EntryRecord, RenewRequest, SettleRequest

ACTIVE = "active"
SETTLED = "settled"


def new_entry_values(draft: EntryCreate) -> dict[str, Any]:
    """Column values for a freshly recorded loan: active, no settlement or renewal data."""
    return {
        "type": draft.type,
        "date": draft.date,
        "customer_name": draft.customer_name,
        "customer_address": draft.customer_address,
        "customer_mobile": draft.customer_mobile,
        "items": draft.items,
        "given_amount": draft.given_amount,
        "status": ACTIVE,
        "settled_amount": None,
        "settled_date": None,
        "settlement_notes": None,
        "renewal_history": [],
        "renewal_date": None,
        "renewal_amount": None,
    }


def _require_status(entry: EntryRecord, status: str, action: str) -> None:
    if entry.status != status:
        raise InvalidEntryStateError(f"Cannot {action} entry {entry.id}: status is {entry.status}")


def settle_values(entry: EntryRecord, request: SettleRequest) -> dict[str, Any]:
    """Close the loan. settled_amount stores the extra over principal, not the gross total."""
    _require_status(entry, ACTIVE, "settle")
    if request.total_amount < entry.given_amount:
        raise BusinessRuleError(
            f"Settlement amount {request.total_amount} is less than the given amount {entry.given_amount}"
        )
    notes = (request.notes or "").strip() or None
    return {
        "status": SETTLED,
        "settled_amount": request.total_amount - entry.given_amount,
        "settled_date": request.date,
        "settlement_notes": notes,
    }


def renew_values(entry: EntryRecord, request: RenewRequest) -> dict[str, Any]:
    """Archive the current cycle into renewal_history and start a new one."""
    _require_status(entry, ACTIVE, "renew")
    if request.settlement_amount < entry.given_amount:
        raise BusinessRuleError(
            f"Settlement amount {request.settlement_amount} is less than the given amount {entry.given_amount}"
        )
    snapshot = {
        "date": entry.date,
        "amount": entry.given_amount,
        "settled_amount": request.settlement_amount,
        "renewal_date": request.renewal_date,
        "new_amount": request.new_loan_amount,
    }
    history = [h.model_dump() for h in entry.renewal_history]
    history.append(snapshot)
    return {
        "renewal_history": history,
        "date": request.renewal_date,
        "given_amount": request.new_loan_amount,
        "renewal_date": request.renewal_date,
        "renewal_amount": request.settlement_amount,
    }


def revoke_values(entry: EntryRecord) -> dict[str, Any]:
    """Reopen a settled loan. The record keeps no trace of the settlement."""
    _require_status(entry, SETTLED, "revoke")
    return {
        "status": ACTIVE,
        "settled_amount": None,
        "settled_date": None,
        "settlement_notes": None,
    }


def ensure_deletable(entry: EntryRecord) -> None:
    _require_status(entry, ACTIVE, "delete")
