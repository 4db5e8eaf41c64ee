"""
Unit tests for the full synchronization of charge notifications.
"""
import unittest
from decimal import Decimal

from hoa_import.models.import_result import EntityStats
from hoa_import.services.importers.apartments import import_apartments
from hoa_import.services.importers.notifications import import_notifications
from hoa_import.utils.db.base import EntityKind, StoreError
from tests.fixtures.in_memory_store import InMemoryImportStore, run_in_transaction
from tests.fixtures.legacy_files import create_apartment_entry, create_notification_entry


class TestImportNotifications(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryImportStore()

    def _import(self, entries, hoa_external_id="HOA1", apartment_code="EXT1"):
        stats, errors = EntityStats(), []

        async def work(uow):
            hoa = await uow.upsert_hoa(hoa_external_id)
            apartments = await import_apartments(
                uow, hoa, [create_apartment_entry(apartment_code=apartment_code)], EntityStats(), [])
            await import_notifications(uow, hoa, apartments, entries, stats, errors)

        run_in_transaction(self.store, work)
        return stats, errors

    def test_creates_notifications(self):
        stats, errors = self._import([create_notification_entry(line_no=1), create_notification_entry(line_no=2)])

        self.assertEqual((stats.total, stats.created, stats.deleted), (2, 2, 0))
        self.assertEqual(errors, [])
        self.assertEqual(len(self.store.records(EntityKind.NOTIFICATION)), 2)

    def test_updates_changed_and_deletes_missing(self):
        self._import([create_notification_entry(line_no=1), create_notification_entry(line_no=2)])

        stats, _ = self._import([create_notification_entry(line_no=1, total_amount=Decimal("95.00"))])

        self.assertEqual((stats.created, stats.updated, stats.deleted), (0, 1, 1))
        remaining = self.store.records(EntityKind.NOTIFICATION)
        self.assertEqual([(n.line_no, n.total_amount) for n in remaining], [(1, Decimal("95.00"))])

    def test_empty_file_deletes_all_notifications_of_hoa(self):
        self._import([create_notification_entry(line_no=1), create_notification_entry(line_no=2)])

        stats, _ = self._import([])

        self.assertEqual((stats.total, stats.deleted), (0, 2))
        self.assertEqual(self.store.records(EntityKind.NOTIFICATION), [])

    def test_unresolved_entries_skipped_and_stale_rows_still_deleted(self):
        self._import([create_notification_entry(line_no=1)])

        stats, _ = self._import([create_notification_entry(apartment_code="GONE")])

        self.assertEqual((stats.skipped, stats.deleted), (1, 1))

    def test_other_hoas_untouched(self):
        self._import([create_notification_entry(line_no=1)])
        self._import([create_notification_entry(apartment_code="B1")], hoa_external_id="HOA2", apartment_code="B1")

        stats, _ = self._import([], hoa_external_id="HOA2", apartment_code="B1")

        self.assertEqual(stats.deleted, 1)
        remaining = self.store.records(EntityKind.NOTIFICATION)
        self.assertEqual([n.external_id for n in remaining], ["W00162"])
        self.assertEqual(len(remaining), 1)

    def test_delete_failure_fails_transaction(self):
        self._import([create_notification_entry(line_no=1)])
        self.store.failing_operations.add("delete:notification")

        with self.assertRaises(StoreError):
            self._import([])

        self.assertEqual(len(self.store.records(EntityKind.NOTIFICATION)), 1)


if __name__ == '__main__':
    unittest.main()
