"""
Bulk export (spreadsheet / JSON) and all-or-nothing JSON import of entries.
"""
from __future__ import annotations

import datetime as dt
import io
import json
import logging
from decimal import Decimal
from typing import Any, Iterable

import pandas as pd
from pydantic import ValidationError

from exceptions import ImportValidationError
from repositories.entries import EntryRepository
from schemas.entry import EntryRecord, amount_to_json
from schemas.transfer import ImportEntry

logger = logging.getLogger(__name__)

SPREADSHEET_COLUMNS = [
    "Type",
    "Date",
    "Customer Name",
    "Given Amount",
    "Status",
    "Settled Amount",
    "Settled Date",
]
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def export_filename(kind: str, today: dt.date) -> str:
    """``loan-report-DD-MM-YYYY.xlsx`` for spreadsheets, ``loan-data-DD-MM-YYYY.json`` for JSON."""
    stamp = today.strftime("%d-%m-%Y")
    if kind == "xlsx":
        return f"loan-report-{stamp}.xlsx"
    if kind == "json":
        return f"loan-data-{stamp}.json"
    raise ValueError(f"Unknown export kind: {kind}")


def spreadsheet_rows(entries: Iterable[EntryRecord]) -> list[dict[str, Any]]:
    return [
        {
            "Type": e.type,
            "Date": e.date.isoformat(),
            "Customer Name": e.customer_name,
            "Given Amount": amount_to_json(e.given_amount),
            "Status": e.status,
            "Settled Amount": amount_to_json(e.settled_amount) if e.settled_amount is not None else "",
            "Settled Date": e.settled_date.isoformat() if e.settled_date else "",
        }
        for e in entries
    ]


def export_xlsx(entries: Iterable[EntryRecord]) -> bytes:
    df = pd.DataFrame(spreadsheet_rows(entries), columns=SPREADSHEET_COLUMNS)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="xlsxwriter") as writer:
        df.to_excel(writer, sheet_name="Loans", index=False)
    return buffer.getvalue()


def export_json(entries: Iterable[EntryRecord]) -> bytes:
    payload = [e.model_dump(mode="json") for e in entries]
    return json.dumps(payload, indent=2).encode("utf-8")


def _decimal(value) -> Decimal | None:
    return None if value is None else Decimal(str(value))


def _to_values(item: ImportEntry) -> dict[str, Any]:
    return {
        "type": item.type,
        "date": item.date,
        "customer_name": item.customer_name,
        "customer_address": item.customer_address,
        "customer_mobile": item.customer_mobile,
        "items": item.items,
        "given_amount": _decimal(item.given_amount),
        "status": item.status,
        "settled_amount": _decimal(item.settled_amount),
        "settled_date": item.settled_date,
        "settlement_notes": item.settlement_notes,
        "renewal_history": [h.model_dump() for h in item.renewal_history or []],
        "renewal_date": item.renewal_date,
        "renewal_amount": _decimal(item.renewal_amount),
    }


def validate_import(data: Any) -> list[ImportEntry]:
    """Validate every element; raise ImportValidationError listing all violations."""
    if not isinstance(data, list):
        raise ImportValidationError("Imported data must be an array")

    items: list[ImportEntry] = []
    violations: list[dict[str, Any]] = []
    for index, element in enumerate(data):
        try:
            items.append(ImportEntry.model_validate(element))
        except ValidationError as e:
            for err in e.errors():
                violations.append({
                    "index": index,
                    "field": ".".join(str(p) for p in err["loc"]) or None,
                    "message": err["msg"],
                })
    if violations:
        raise ImportValidationError(
            f"Invalid data format: {len({v['index'] for v in violations})} of {len(data)} entries rejected",
            violations,
        )
    return items


def parse_import_document(raw: bytes) -> Any:
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ImportValidationError(f"Import file is not valid JSON: {e}") from e


async def import_entries(repository: EntryRepository, data: Any) -> list[EntryRecord]:
    """Insert a validated batch in one go. Nothing is written if any element is invalid."""
    try:
        items = validate_import(data)
    except ImportValidationError as e:
        logger.warning("Rejected import batch: %s", e.message)
        raise
    if not items:
        return []
    created = await repository.create_many([_to_values(item) for item in items])
    logger.info("Imported %d entries", len(created))
    return created
