"""
Entry repository: the only code that talks to the ``entries`` table.

Status-changing writes take the expected prior status and report whether a
row matched, so callers can tell a stale read from a successful write.
"""
from __future__ import annotations

import datetime as dt
from typing import Any, Optional, Protocol

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models import Entry
from schemas.entry import CustomerSuggestion, EntryRecord


class EntryRepository(Protocol):
    async def get(self, entry_id: int) -> Optional[EntryRecord]: ...

    async def create(self, values: dict[str, Any]) -> EntryRecord: ...

    async def create_many(self, rows: list[dict[str, Any]]) -> list[EntryRecord]: ...

    async def list_active(self, on_date: Optional[dt.date] = None) -> list[EntryRecord]: ...

    async def list_settled(self, settled_on: Optional[dt.date] = None) -> list[EntryRecord]: ...

    async def list_between(self, start: dt.date, end: dt.date) -> list[EntryRecord]: ...

    async def search_customers(self, term: str, limit: int) -> list[CustomerSuggestion]: ...

    async def update_if_status(
        self,
        entry_id: int,
        expected_status: str,
        values: dict[str, Any],
        unchanged: Optional[dict[str, Any]] = None,
    ) -> Optional[EntryRecord]: ...

    async def delete_if_status(self, entry_id: int, expected_status: str) -> bool: ...


def _to_record(row: Entry) -> EntryRecord:
    return EntryRecord.model_validate(row)


class SqlEntryRepository:
    """EntryRepository over an async SQLAlchemy session. Commit is left to the caller."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, entry_id: int) -> Optional[EntryRecord]:
        row = await self.session.get(Entry, entry_id, populate_existing=True)
        return _to_record(row) if row else None

    async def create(self, values: dict[str, Any]) -> EntryRecord:
        row = Entry(**values)
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return _to_record(row)

    async def create_many(self, rows: list[dict[str, Any]]) -> list[EntryRecord]:
        entries = [Entry(**values) for values in rows]
        self.session.add_all(entries)
        await self.session.flush()
        for row in entries:
            await self.session.refresh(row)
        return [_to_record(row) for row in entries]

    async def list_active(self, on_date: Optional[dt.date] = None) -> list[EntryRecord]:
        stmt = select(Entry).where(Entry.status == "active")
        if on_date is not None:
            stmt = stmt.where(Entry.date == on_date)
        stmt = stmt.order_by(Entry.date.desc(), Entry.id.desc())
        result = await self.session.execute(stmt)
        return [_to_record(row) for row in result.scalars().all()]

    async def list_settled(self, settled_on: Optional[dt.date] = None) -> list[EntryRecord]:
        stmt = select(Entry).where(Entry.status == "settled")
        if settled_on is not None:
            stmt = stmt.where(Entry.settled_date == settled_on)
        stmt = stmt.order_by(Entry.settled_date.desc(), Entry.id.desc())
        result = await self.session.execute(stmt)
        return [_to_record(row) for row in result.scalars().all()]

    async def list_between(self, start: dt.date, end: dt.date) -> list[EntryRecord]:
        stmt = (
            select(Entry)
            .where(Entry.date >= start, Entry.date <= end)
            .order_by(Entry.date.desc(), Entry.id.desc())
        )
        result = await self.session.execute(stmt)
        return [_to_record(row) for row in result.scalars().all()]

    async def search_customers(self, term: str, limit: int) -> list[CustomerSuggestion]:
        pattern = f"%{_escape_like(term)}%"
        # Newest row per name supplies the address and mobile.
        ranked = (
            select(
                Entry.customer_name,
                Entry.customer_address,
                Entry.customer_mobile,
                func.row_number()
                .over(partition_by=Entry.customer_name, order_by=Entry.id.desc())
                .label("row_rank"),
            )
            .where(Entry.customer_name.ilike(pattern, escape="\\"))
            .subquery()
        )
        stmt = (
            select(ranked.c.customer_name, ranked.c.customer_address, ranked.c.customer_mobile)
            .where(ranked.c.row_rank == 1)
            .order_by(ranked.c.customer_name)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [
            CustomerSuggestion(customer_name=name, customer_address=address, customer_mobile=mobile)
            for name, address, mobile in result.all()
        ]

    async def update_if_status(
        self,
        entry_id: int,
        expected_status: str,
        values: dict[str, Any],
        unchanged: Optional[dict[str, Any]] = None,
    ) -> Optional[EntryRecord]:
        """Write ``values`` only if the row still has ``expected_status`` and the ``unchanged`` column values."""
        stmt = update(Entry).where(Entry.id == entry_id, Entry.status == expected_status)
        for column, value in (unchanged or {}).items():
            stmt = stmt.where(getattr(Entry, column) == value)
        result = await self.session.execute(
            stmt.values(**values).execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return await self.get(entry_id)

    async def delete_if_status(self, entry_id: int, expected_status: str) -> bool:
        result = await self.session.execute(
            delete(Entry)
            .where(Entry.id == entry_id, Entry.status == expected_status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
