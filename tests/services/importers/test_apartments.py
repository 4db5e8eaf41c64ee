"""
Unit tests for apartment reconciliation, including soft deactivation.
"""
import unittest

from hoa_import.models.import_result import EntityStats
from hoa_import.services.importers.apartments import import_apartments
from hoa_import.utils.db.base import EntityKind, StoreError
from tests.fixtures.in_memory_store import InMemoryImportStore, run_in_transaction
from tests.fixtures.legacy_files import create_apartment_entry


class TestImportApartments(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryImportStore()
        self.roster = [
            create_apartment_entry(apartment_code="EXT1"),
            create_apartment_entry(apartment_code="EXT2", owner="Anna Nowak"),
        ]

    def _import(self, entries):
        stats, errors = EntityStats(), []

        async def work(uow):
            hoa = await uow.upsert_hoa("HOA1")
            return await import_apartments(uow, hoa, entries, stats, errors)

        apartment_map = run_in_transaction(self.store, work)
        return apartment_map, stats, errors

    def test_creates_new_apartments(self):
        apartment_map, stats, errors = self._import(self.roster)

        self.assertEqual((stats.total, stats.created, stats.updated, stats.deleted), (2, 2, 0, 0))
        self.assertEqual(errors, [])
        self.assertEqual(set(apartment_map.ids), {"W00162#EXT1", "W00162#EXT2"})
        stored = {a.key: a for a in self.store.apartments_of("HOA1")}
        self.assertEqual(apartment_map.ids["W00162#EXT2"], stored["W00162#EXT2"].id)
        self.assertEqual(stored["W00162#EXT2"].owner, "Anna Nowak")
        self.assertTrue(stored["W00162#EXT1"].is_active)

    def test_reimport_is_idempotent(self):
        first_map, _, _ = self._import(self.roster)

        second_map, stats, _ = self._import(self.roster)

        self.assertEqual((stats.created, stats.updated, stats.skipped, stats.deleted), (0, 0, 0, 0))
        self.assertEqual(second_map.ids, first_map.ids)
        self.assertEqual(len(self.store.apartments_of("HOA1")), 2)

    def test_updates_only_changed_fields(self):
        self._import(self.roster)
        changed = [self.roster[0], create_apartment_entry(apartment_code="EXT2", owner="Anna Kowalska")]

        _, stats, _ = self._import(changed)

        self.assertEqual(stats.updated, 1)
        self.assertEqual(self.store.update_calls[-1][0], EntityKind.APARTMENT)
        self.assertEqual(self.store.update_calls[-1][2], ["owner"])

    def test_missing_apartment_deactivated_and_reactivated(self):
        self._import(self.roster)

        apartment_map, stats, _ = self._import(self.roster[:1])

        self.assertEqual(stats.deleted, 1)
        self.assertEqual(set(apartment_map.ids), {"W00162#EXT1"})
        stored = {a.key: a for a in self.store.apartments_of("HOA1")}
        self.assertFalse(stored["W00162#EXT2"].is_active)

        apartment_map, stats, _ = self._import(self.roster)

        self.assertEqual((stats.created, stats.updated, stats.deleted), (0, 1, 0))
        self.assertIn("W00162#EXT2", apartment_map.ids)
        self.assertEqual(self.store.update_calls[-1][2], ["is_active"])

    def test_inactive_apartments_not_deactivated_again(self):
        self._import(self.roster)
        self._import(self.roster[:1])

        _, stats, _ = self._import(self.roster[:1])

        self.assertEqual(stats.deleted, 0)

    def test_duplicate_keys_in_input_are_skipped(self):
        _, stats, _ = self._import(self.roster + [create_apartment_entry(apartment_code="EXT1", owner="Later")])

        self.assertEqual((stats.total, stats.created, stats.skipped), (3, 2, 1))

    def test_create_failure_reported_without_aborting(self):
        self.store.failing_operations.add("bulk_insert:apartment")

        apartment_map, stats, errors = self._import(self.roster)

        self.assertEqual(stats.skipped, 2)
        self.assertEqual(apartment_map.ids, {})
        self.assertEqual(len(errors), 1)
        self.assertIn("Failed to create apartments", errors[0])
        self.assertEqual(self.store.committed, 1)

    def test_deactivation_failure_fails_transaction(self):
        self._import(self.roster)
        self.store.failing_operations.add("set_apartments_active")

        with self.assertRaises(StoreError):
            self._import(self.roster[:1])

        self.assertTrue(all(a.is_active for a in self.store.apartments_of("HOA1")))
        self.assertEqual(self.store.rolled_back, 1)

    def test_apartments_of_other_hoas_untouched(self):
        self._import(self.roster)

        async def other(uow):
            hoa = await uow.upsert_hoa("HOA2")
            return await import_apartments(uow, hoa, [create_apartment_entry(apartment_code="X1")], EntityStats(), [])

        run_in_transaction(self.store, other)

        self.assertEqual(len(self.store.apartments_of("HOA1")), 2)
        self.assertTrue(all(a.is_active for a in self.store.apartments_of("HOA1")))

    def test_same_apartment_codes_in_another_hoa_are_created(self):
        self._import(self.roster)
        stats = EntityStats()

        async def other(uow):
            hoa = await uow.upsert_hoa("HOA2")
            return await import_apartments(uow, hoa, self.roster, stats, [])

        apartment_map = run_in_transaction(self.store, other)

        self.assertEqual(stats.created, 2)
        hoa2_ids = {a.id for a in self.store.apartments_of("HOA2")}
        self.assertEqual(set(apartment_map.ids.values()), hoa2_ids)
        self.assertTrue(hoa2_ids.isdisjoint(a.id for a in self.store.apartments_of("HOA1")))


if __name__ == '__main__':
    unittest.main()
