from __future__ import annotations

import datetime as dt
import logging
from typing import Optional

from config import settings
from exceptions import EntryNotFoundError, PreconditionFailedError
from repositories.entries import EntryRepository
from schemas.entry import (
    CustomerSuggestion,
    EntryCreate,
    EntryRecord,
    RenewRequest,
    SettledEntryRecord,
    SettleRequest,
)
from services import lifecycle
from services.filters import filter_entries

logger = logging.getLogger(__name__)


class EntryService:
    """Entry creation, the active/settled views and their transitions."""

    def __init__(self, repository: EntryRepository, suggestion_limit: Optional[int] = None) -> None:
        self.repository = repository
        self.suggestion_limit = suggestion_limit or settings.suggestion_limit

    async def create_entry(self, draft: EntryCreate) -> EntryRecord:
        entry = await self.repository.create(lifecycle.new_entry_values(draft))
        logger.info("Created %s entry %s for %s", entry.type, entry.id, entry.customer_name)
        return entry

    async def suggest_customers(self, term: str) -> list[CustomerSuggestion]:
        term = term.strip()
        if not term:
            return []
        return await self.repository.search_customers(term, self.suggestion_limit)

    async def get_entry(self, entry_id: int) -> EntryRecord:
        entry = await self.repository.get(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        return entry

    async def list_active(
        self, on_date: Optional[dt.date] = None, search: Optional[str] = None
    ) -> list[EntryRecord]:
        entries = await self.repository.list_active(on_date)
        return filter_entries(entries, search)

    async def list_settled(
        self, settled_on: Optional[dt.date] = None, search: Optional[str] = None
    ) -> list[SettledEntryRecord]:
        entries = await self.repository.list_settled(settled_on)
        rows = [
            SettledEntryRecord(
                **e.model_dump(),
                total_amount=e.given_amount + (e.settled_amount or 0),
            )
            for e in entries
        ]
        return filter_entries(rows, search, include_settled_amount=True)

    async def settle(self, entry_id: int, request: SettleRequest) -> EntryRecord:
        entry = await self.get_entry(entry_id)
        values = lifecycle.settle_values(entry, request)
        updated = await self._conditional_update(entry_id, lifecycle.ACTIVE, values)
        logger.info(
            "Settled entry %s: total %s, extra %s", entry_id, request.total_amount, values["settled_amount"]
        )
        return updated

    async def renew(self, entry_id: int, request: RenewRequest) -> EntryRecord:
        entry = await self.get_entry(entry_id)
        values = lifecycle.renew_values(entry, request)
        # The history was built from this read; a cycle closed meanwhile must not be overwritten.
        updated = await self._conditional_update(
            entry_id,
            lifecycle.ACTIVE,
            values,
            unchanged={"date": entry.date, "given_amount": entry.given_amount},
        )
        logger.info(
            "Renewed entry %s on %s: %s -> %s",
            entry_id, request.renewal_date, entry.given_amount, request.new_loan_amount,
        )
        return updated

    async def revoke(self, entry_id: int) -> EntryRecord:
        entry = await self.get_entry(entry_id)
        values = lifecycle.revoke_values(entry)
        updated = await self._conditional_update(entry_id, lifecycle.SETTLED, values)
        logger.info("Revoked settlement of entry %s", entry_id)
        return updated

    async def delete(self, entry_id: int) -> None:
        entry = await self.get_entry(entry_id)
        lifecycle.ensure_deletable(entry)
        if not await self.repository.delete_if_status(entry_id, lifecycle.ACTIVE):
            logger.warning("Delete of entry %s lost a race; it is no longer active", entry_id)
            raise PreconditionFailedError(entry_id, lifecycle.ACTIVE)
        logger.info("Deleted entry %s", entry_id)

    async def _conditional_update(
        self, entry_id: int, expected_status: str, values: dict, unchanged: Optional[dict] = None
    ) -> EntryRecord:
        updated = await self.repository.update_if_status(entry_id, expected_status, values, unchanged)
        if updated is None:
            logger.warning("Entry %s changed since it was read (expected %s)", entry_id, expected_status)
            raise PreconditionFailedError(entry_id, expected_status)
        return updated
