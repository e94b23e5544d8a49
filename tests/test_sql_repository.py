"""
Tests for SqlEntryRepository on an in-memory SQLite database.
Run from project root: python -m pytest tests/test_sql_repository.py -v
"""
import datetime as dt
import unittest
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import models  # noqa: F401  registers tables on Base.metadata
from database import Base, engine_kwargs
from exceptions import InvalidEntryStateError
from repositories.entries import SqlEntryRepository
from schemas.entry import EntryCreate, RenewRequest, SettleRequest
from services import lifecycle
from services.entries import EntryService

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


def _values(**overrides):
    draft = {
        "type": "NR",
        "date": dt.date(2025, 1, 1),
        "customer_name": "Ramesh",
        "customer_address": "12 Market Road",
        "customer_mobile": "9876543210",
        "items": "Gold chain",
        "given_amount": Decimal("1000"),
    }
    draft.update(overrides)
    return lifecycle.new_entry_values(EntryCreate(**draft))


class TestSqlEntryRepository(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine = create_async_engine(TEST_DB_URL, **engine_kwargs(TEST_DB_URL))
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.session: AsyncSession = async_sessionmaker(self.engine, expire_on_commit=False)()
        self.repo = SqlEntryRepository(self.session)

    async def asyncTearDown(self):
        await self.session.close()
        await self.engine.dispose()

    async def test_create_assigns_id_and_defaults(self):
        entry = await self.repo.create(_values())
        self.assertIsInstance(entry.id, int)
        self.assertEqual(entry.status, "active")
        self.assertEqual(entry.given_amount, Decimal("1000"))
        self.assertEqual(entry.renewal_history, [])
        self.assertIsNotNone(entry.created_at)

    async def test_listing_order_and_filters(self):
        await self.repo.create(_values(date=dt.date(2025, 1, 1)))
        newest = await self.repo.create(_values(date=dt.date(2025, 1, 9), customer_name="Meena"))
        await self.repo.create(_values(date=dt.date(2025, 2, 1), customer_name="Later"))

        active = await self.repo.list_active()
        self.assertEqual([e.customer_name for e in active], ["Later", "Meena", "Ramesh"])
        on_day = await self.repo.list_active(on_date=dt.date(2025, 1, 9))
        self.assertEqual([e.id for e in on_day], [newest.id])

        january = await self.repo.list_between(dt.date(2025, 1, 1), dt.date(2025, 1, 31))
        self.assertEqual([e.customer_name for e in january], ["Meena", "Ramesh"])

    async def test_conditional_update(self):
        entry = await self.repo.create(_values())
        settled = await self.repo.update_if_status(
            entry.id, "active", {"status": "settled", "settled_amount": Decimal("200"),
                                 "settled_date": dt.date(2025, 1, 10)}
        )
        self.assertEqual(settled.status, "settled")
        self.assertEqual(settled.settled_amount, Decimal("200"))

        stale = await self.repo.update_if_status(entry.id, "active", {"status": "settled"})
        self.assertIsNone(stale)

        settled_list = await self.repo.list_settled(settled_on=dt.date(2025, 1, 10))
        self.assertEqual([e.id for e in settled_list], [entry.id])

    async def test_conditional_delete(self):
        entry = await self.repo.create(_values())
        self.assertFalse(await self.repo.delete_if_status(entry.id, "settled"))
        self.assertTrue(await self.repo.delete_if_status(entry.id, "active"))
        self.assertIsNone(await self.repo.get(entry.id))

    async def test_search_customers_is_case_insensitive_and_deduplicated(self):
        await self.repo.create(_values(customer_name="Ravi Kumar", customer_address="Old address"))
        await self.repo.create(_values(customer_name="Ravi Kumar", customer_address="New address"))
        await self.repo.create(_values(customer_name="Kavita", customer_mobile=None))
        await self.repo.create(_values(customer_name="100% Pure"))

        found = await self.repo.search_customers("RAVI", limit=5)
        self.assertEqual([s.customer_name for s in found], ["Ravi Kumar"])
        self.assertEqual(found[0].customer_address, "New address")

        self.assertEqual([s.customer_name for s in await self.repo.search_customers("vi", 5)],
                         ["Kavita", "Ravi Kumar"])
        self.assertEqual([s.customer_name for s in await self.repo.search_customers("0%", 5)], ["100% Pure"])
        self.assertEqual(len(await self.repo.search_customers("vi", 1)), 1)

    async def test_settlement_invariant_enforced_by_table(self):
        with self.assertRaises(IntegrityError):
            await self.repo.create({**_values(), "status": "settled"})

    async def test_revoke_round_trip(self):
        service = EntryService(self.repo)
        entry = await service.create_entry(EntryCreate(
            type="NR", date=dt.date(2025, 1, 1), customer_name="Asha", customer_address="Temple Street",
            items="Ring", given_amount=Decimal("1000"),
        ))
        await service.settle(entry.id, SettleRequest(
            total_amount=Decimal("1150"), date=dt.date(2025, 1, 15), notes="paid in cash",
        ))

        revoked = await service.revoke(entry.id)
        self.assertEqual(revoked.status, "active")
        self.assertIsNone(revoked.settled_amount)
        self.assertIsNone(revoked.settled_date)
        self.assertIsNone(revoked.settlement_notes)
        self.assertEqual([e.id for e in await self.repo.list_active()], [entry.id])
        self.assertEqual(await self.repo.list_settled(), [])

        self.assertIsNone(await self.repo.update_if_status(
            entry.id, "settled", {"status": "active", "settled_amount": None, "settled_date": None},
        ))
        with self.assertRaises(InvalidEntryStateError):
            await service.revoke(entry.id)

    async def test_stale_cycle_blocks_renew_write(self):
        entry = await self.repo.create(_values())
        renewed = await self.repo.update_if_status(
            entry.id, "active", {"date": dt.date(2025, 2, 1), "given_amount": Decimal("1500")},
            unchanged={"date": dt.date(2025, 1, 1), "given_amount": Decimal("1000")},
        )
        self.assertEqual(renewed.given_amount, Decimal("1500"))

        stale = await self.repo.update_if_status(
            entry.id, "active", {"given_amount": Decimal("900")},
            unchanged={"date": dt.date(2025, 1, 1), "given_amount": Decimal("1000")},
        )
        self.assertIsNone(stale)
        self.assertEqual((await self.repo.get(entry.id)).given_amount, Decimal("1500"))

    async def test_search_customers_limit_counts_distinct_names(self):
        for i in range(4):
            await self.repo.create(_values(customer_name="Ravi", customer_address=f"Address {i}"))
        await self.repo.create(_values(customer_name="Ravindra"))
        found = await self.repo.search_customers("rav", limit=2)
        self.assertEqual([s.customer_name for s in found], ["Ravi", "Ravindra"])
        self.assertEqual(found[0].customer_address, "Address 3")

    async def test_service_renew_persists_history(self):
        service = EntryService(self.repo)
        entry = await service.create_entry(EntryCreate(
            type="R", date=dt.date(2025, 1, 1), customer_name="Asha", customer_address="Temple Street",
            items="Bangles", given_amount=Decimal("1000"),
        ))
        await service.renew(entry.id, RenewRequest(
            settlement_amount=Decimal("1100"), renewal_date=dt.date(2025, 2, 1), new_loan_amount=Decimal("1500"),
        ))
        renewed = await service.renew(entry.id, RenewRequest(
            settlement_amount=Decimal("1600.50"), renewal_date=dt.date(2025, 3, 1), new_loan_amount=Decimal("800"),
        ))
        self.assertEqual(renewed.date, dt.date(2025, 3, 1))
        self.assertEqual(renewed.given_amount, Decimal("800"))
        self.assertEqual(renewed.renewal_amount, Decimal("1600.50"))
        self.assertEqual([h.date for h in renewed.renewal_history], [dt.date(2025, 1, 1), dt.date(2025, 2, 1)])
        self.assertEqual(renewed.renewal_history[1].settled_amount, Decimal("1600.5"))

        await service.settle(entry.id, SettleRequest(total_amount=Decimal("900"), date=dt.date(2025, 3, 20)))
        self.assertIsNone(await self.repo.update_if_status(entry.id, "active", {"items": "Bangles"}))
        with self.assertRaises(InvalidEntryStateError):
            await service.renew(entry.id, RenewRequest(settlement_amount=Decimal("900"), new_loan_amount=Decimal("1")))


if __name__ == "__main__":
    unittest.main()
