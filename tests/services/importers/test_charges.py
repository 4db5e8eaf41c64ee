from decimal import Decimal

import pytest

from hoa_import.models.import_result import EntityStats
from hoa_import.services.importers.apartments import ApartmentMap
from hoa_import.services.importers.charges import import_charges
from hoa_import.utils.db.base import EntityKind
from tests.fixtures.in_memory_store import InMemoryImportStore, run_in_transaction
from tests.fixtures.legacy_files import create_charge_entry


@pytest.fixture
def store():
    return InMemoryImportStore()


@pytest.fixture
def apartments():
    return ApartmentMap(ids={"W00162#EXT1": "apt-1", "W00162#EXT2": "apt-2"})


def _import(store, apartments, entries, batch_size=100):
    stats, errors = EntityStats(), []

    async def work(uow):
        await import_charges(uow, apartments, entries, stats, errors, update_batch_size=batch_size)

    run_in_transaction(store, work)
    return stats, errors


def test_creates_charges_and_skips_unknown_apartments(store, apartments):
    entries = [
        create_charge_entry(line_no=1),
        create_charge_entry(line_no=2),
        create_charge_entry(apartment_code="EXT2", period="202502", line_no=1),
        create_charge_entry(apartment_code="GONE", line_no=1),
    ]

    stats, errors = _import(store, apartments, entries)

    assert (stats.total, stats.created, stats.skipped) == (4, 3, 1)
    assert errors == []
    assert store.charge_queries == [(["apt-1", "apt-2"], ["202501", "202502"])]


def test_reimport_updates_changed_amounts(store, apartments):
    _import(store, apartments, [create_charge_entry(line_no=1), create_charge_entry(line_no=2)])

    stats, _ = _import(store, apartments, [
        create_charge_entry(line_no=1),
        create_charge_entry(line_no=2, total_amount=Decimal("80.00")),
    ])

    assert (stats.created, stats.updated, stats.skipped) == (0, 1, 0)
    assert store.update_calls[-1][2] == ["unit_price", "total_amount"]
    totals = sorted(c.total_amount for c in store.records(EntityKind.CHARGE))
    assert totals == [Decimal("73.00"), Decimal("80.00")]


def test_charges_missing_from_file_are_kept(store, apartments):
    _import(store, apartments, [create_charge_entry(line_no=1), create_charge_entry(line_no=2)])

    stats, _ = _import(store, apartments, [create_charge_entry(line_no=1)])

    assert stats.deleted == 0
    assert len(store.records(EntityKind.CHARGE)) == 2


def test_nothing_resolvable_skips_queries(store, apartments):
    stats, errors = _import(store, apartments, [create_charge_entry(apartment_code="GONE")])

    assert (stats.total, stats.skipped) == (1, 1)
    assert store.charge_queries == []
    assert errors == []


def test_failing_update_batch_is_skipped(store, apartments):
    _import(store, apartments, [create_charge_entry(line_no=n) for n in range(1, 6)])
    store.failing_keys.add(("apt-1", "202501", 3))

    stats, errors = _import(
        store, apartments,
        [create_charge_entry(line_no=n, total_amount=Decimal("99.00")) for n in range(1, 6)],
        batch_size=2,
    )

    assert (stats.updated, stats.skipped) == (3, 2)
    assert len(errors) == 1
    assert errors[0].startswith("Failed to update charge batch of 2")
    totals = {c.external_line_no: c.total_amount for c in store.records(EntityKind.CHARGE)}
    assert totals[3] == Decimal("73.00")
    assert totals[4] == Decimal("73.00")
    assert totals[5] == Decimal("99.00")


def test_create_failure_is_reported(store, apartments):
    store.failing_operations.add("bulk_insert:charge")

    stats, errors = _import(store, apartments, [create_charge_entry(line_no=1)])

    assert (stats.created, stats.skipped) == (0, 1)
    assert errors[0].startswith("Failed to create charges")
    assert store.records(EntityKind.CHARGE) == []
