"""
Unit tests for the shared reconciliation steps.
"""
import unittest
from decimal import Decimal

from hoa_import.models.import_result import EntityStats
from hoa_import.models.records import Charge
from hoa_import.services.importers.base import (
    apply_creates,
    apply_updates,
    changed_fields,
    plan_reconciliation,
    resolve_apartments,
)
from hoa_import.services.importers.charges import to_charge_data
from hoa_import.utils.db.base import EntityKind
from tests.fixtures.in_memory_store import InMemoryImportStore, run_in_transaction
from tests.fixtures.legacy_files import create_charge_entry


def _charge(line_no: int, total: str = "73.00"):
    return to_charge_data(create_charge_entry(line_no=line_no, total_amount=Decimal(total)), "apt-1")


class TestPlanReconciliation(unittest.TestCase):
    def test_changed_fields(self):
        existing = _charge(1)
        incoming = _charge(1, "80.00")

        self.assertEqual(changed_fields(existing, incoming), ["unit_price", "total_amount"])
        self.assertEqual(changed_fields(existing, _charge(1)), [])

    def test_decimal_scale_is_not_a_change(self):
        stored = _charge(1, "73.00")
        incoming = _charge(1, "73")

        self.assertEqual(changed_fields(stored, incoming), [])

    def test_partitions_records(self):
        existing = {
            ("apt-1", "202501", 1): Charge(id="c1", **_charge(1).model_dump()),
            ("apt-1", "202501", 2): Charge(id="c2", **_charge(2).model_dump()),
        }

        plan = plan_reconciliation([_charge(1), _charge(2, "99.00"), _charge(3), _charge(3, "1.00")], existing)

        self.assertEqual([c.external_line_no for c in plan.creates], [3])
        self.assertEqual(len(plan.updates), 1)
        self.assertEqual(plan.updates[0].record_id, "c2")
        self.assertEqual(plan.updates[0].fields, ["unit_price", "total_amount"])
        self.assertEqual(plan.unchanged, 1)
        self.assertEqual(plan.duplicates, 1)
        self.assertEqual(plan.creates[0].total_amount, Decimal("73.00"))

    def test_resolve_apartments_counts_unknown(self):
        stats = EntityStats()
        known = create_charge_entry()
        unknown = create_charge_entry(apartment_code="NOPE")

        resolved = resolve_apartments([known, unknown], {"W00162#EXT1": "apt-1"}, stats, "charge")

        self.assertEqual(resolved, [(known, "apt-1")])
        self.assertEqual(stats.skipped, 1)


class TestApplySteps(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryImportStore()

    def test_apply_creates_counts_ignored_duplicates_as_skipped(self):
        stats, errors = EntityStats(), []

        async def work(uow):
            await uow.bulk_insert(EntityKind.CHARGE, [_charge(1)])
            await apply_creates(uow, EntityKind.CHARGE, [_charge(1), _charge(2)], stats, errors, "charges")

        run_in_transaction(self.store, work)

        self.assertEqual(stats.created, 1)
        self.assertEqual(stats.skipped, 1)
        self.assertEqual(errors, [])

    def test_apply_creates_failure_is_reported(self):
        self.store.failing_operations.add("bulk_insert:charge")
        stats, errors = EntityStats(), []

        async def work(uow):
            await apply_creates(uow, EntityKind.CHARGE, [_charge(1), _charge(2)], stats, errors, "charges")

        run_in_transaction(self.store, work)

        self.assertEqual(stats.created, 0)
        self.assertEqual(stats.skipped, 2)
        self.assertEqual(len(errors), 1)
        self.assertTrue(errors[0].startswith("Failed to create charges: "))
        self.assertEqual(self.store.committed, 1)

    def test_apply_updates_rolls_back_failing_batch_only(self):
        stats, errors = EntityStats(), []
        self.store.failing_keys.add(("apt-1", "202501", 4))

        async def work(uow):
            await uow.bulk_insert(EntityKind.CHARGE, [_charge(n) for n in range(1, 6)])
            stored = await uow.find_charges(["apt-1"], ["202501"])
            updates = plan_reconciliation([_charge(n, "80.00") for n in range(1, 6)], {c.key: c for c in stored}).updates
            await apply_updates(uow, EntityKind.CHARGE, updates, stats, errors, "charge",
                                describe=lambda data: f"{data.period}/{data.external_line_no}", batch_size=2)

        run_in_transaction(self.store, work)

        totals = {c.external_line_no: c.total_amount for c in self.store.records(EntityKind.CHARGE)}
        self.assertEqual(totals, {
            1: Decimal("80.00"), 2: Decimal("80.00"),
            3: Decimal("73.00"), 4: Decimal("73.00"),
            5: Decimal("80.00"),
        })
        self.assertEqual(stats.updated, 3)
        self.assertEqual(stats.skipped, 2)
        self.assertEqual(len(errors), 1)
        self.assertTrue(errors[0].startswith("Failed to update charge batch of 2: "))

    def test_apply_updates_single_record_failure_names_record(self):
        stats, errors = EntityStats(), []
        self.store.failing_keys.add(("apt-1", "202501", 1))

        async def work(uow):
            await uow.bulk_insert(EntityKind.CHARGE, [_charge(1)])
            stored = await uow.find_charges(["apt-1"], ["202501"])
            updates = plan_reconciliation([_charge(1, "80.00")], {c.key: c for c in stored}).updates
            await apply_updates(uow, EntityKind.CHARGE, updates, stats, errors, "charge",
                                describe=lambda data: f"{data.period}/{data.external_line_no}")

        run_in_transaction(self.store, work)

        self.assertEqual(stats.skipped, 1)
        self.assertTrue(errors[0].startswith("Failed to update charge 202501/1: "))


if __name__ == '__main__':
    unittest.main()
