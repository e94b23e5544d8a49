"""
Tests for report ranges and aggregation.
Run from project root: python -m pytest tests/test_reporting.py -v
"""
import datetime as dt
import unittest
from decimal import Decimal

from exceptions import BusinessRuleError
from schemas.entry import EntryRecord
from schemas.report import ReportMode
from services.reporting import aggregate, build_report, resolve_range
from tests.fakes import InMemoryEntryRepository


def _record(id, type, given, status="active", settled=None, date=dt.date(2025, 1, 15)):
    return EntryRecord(
        id=id,
        type=type,
        date=date,
        customer_name=f"Customer {id}",
        customer_address="Somewhere",
        items="Ring",
        given_amount=Decimal(given),
        status=status,
        settled_amount=Decimal(settled) if settled is not None else None,
        settled_date=dt.date(2025, 1, 20) if status == "settled" else None,
    )


class TestResolveRange(unittest.TestCase):
    def test_monthly(self):
        r = resolve_range(ReportMode.monthly, dt.date(2024, 2, 10))
        self.assertEqual((r.start, r.end), (dt.date(2024, 2, 1), dt.date(2024, 2, 29)))

    def test_yearly(self):
        r = resolve_range(ReportMode.yearly, dt.date(2025, 7, 4))
        self.assertEqual((r.start, r.end), (dt.date(2025, 1, 1), dt.date(2025, 12, 31)))

    def test_custom(self):
        r = resolve_range(ReportMode.custom, dt.date(2025, 7, 4), dt.date(2025, 3, 1), dt.date(2025, 3, 1))
        self.assertEqual((r.start, r.end), (dt.date(2025, 3, 1), dt.date(2025, 3, 1)))

    def test_custom_start_after_end_rejected(self):
        with self.assertRaises(BusinessRuleError):
            resolve_range(ReportMode.custom, dt.date(2025, 7, 4), dt.date(2025, 3, 2), dt.date(2025, 3, 1))

    def test_custom_requires_both_bounds(self):
        with self.assertRaises(BusinessRuleError):
            resolve_range(ReportMode.custom, dt.date(2025, 7, 4), dt.date(2025, 3, 2), None)


class TestAggregate(unittest.TestCase):
    def test_three_active_two_settled(self):
        entries = [
            _record(1, "NR", "1000"),
            _record(2, "NR", "500"),
            _record(3, "R", "2000"),
            _record(4, "NR", "800", status="settled", settled="120"),
            _record(5, "Vyapari", "3000", status="settled", settled="450.50"),
        ]
        stats = aggregate(entries)

        self.assertEqual(stats.total_loans, 5)
        self.assertEqual(stats.active_loans, 3)
        self.assertEqual(stats.settled_loans, 2)
        self.assertEqual(stats.total_invested, Decimal("7300"))
        self.assertEqual(stats.total_earned, Decimal("570.50"))
        self.assertEqual(stats.profit, Decimal("-6729.50"))

        nr = stats.loan_types["NR"]
        self.assertEqual((nr.total, nr.active, nr.settled), (3, 2, 1))
        self.assertEqual(nr.invested, Decimal("2300"))
        self.assertEqual(nr.earned, Decimal("120"))

        r = stats.loan_types["R"]
        self.assertEqual((r.total, r.active, r.settled), (1, 1, 0))
        self.assertEqual((r.invested, r.earned), (Decimal("2000"), Decimal("0")))

        v = stats.loan_types["Vyapari"]
        self.assertEqual((v.total, v.active, v.settled), (1, 0, 1))
        self.assertEqual((v.invested, v.earned), (Decimal("3000"), Decimal("450.50")))

    def test_empty(self):
        stats = aggregate([])
        self.assertEqual(stats.total_loans, 0)
        self.assertEqual(stats.profit, Decimal("0"))
        self.assertEqual(stats.loan_types, {})

    def test_stats_serialize_as_numbers(self):
        stats = aggregate([_record(1, "NR", "1000.25")])
        dumped = stats.model_dump(mode="json")
        self.assertEqual(dumped["total_invested"], 1000.25)
        self.assertEqual(dumped["loan_types"]["NR"]["earned"], 0)


class TestBuildReport(unittest.IsolatedAsyncioTestCase):
    async def test_range_is_inclusive_and_newest_first(self):
        repo = InMemoryEntryRepository()
        for day in (1, 15, 31):
            await repo.create(_record(0, "NR", "100", date=dt.date(2025, 1, day)).model_dump(exclude={"id"}))
        await repo.create(_record(0, "NR", "100", date=dt.date(2025, 2, 1)).model_dump(exclude={"id"}))

        report = await build_report(repo, ReportMode.monthly, dt.date(2025, 1, 20))
        self.assertEqual([e.date.day for e in report.entries], [31, 15, 1])
        self.assertEqual(report.stats.total_invested, Decimal("300"))


if __name__ == "__main__":
    unittest.main()
