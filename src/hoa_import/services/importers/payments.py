import logging
from typing import List, Sequence

from hoa_import.models.entries import PaymentEntry
from hoa_import.models.import_result import EntityStats
from hoa_import.models.records import PaymentData
from hoa_import.services.importers.apartments import ApartmentMap
from hoa_import.services.importers.base import (
    apply_creates,
    apply_updates,
    index_by_key,
    plan_reconciliation,
    resolve_apartments,
)
from hoa_import.utils.db.base import EntityKind, ImportUnitOfWork

logger = logging.getLogger(__name__)


def to_payment_data(entry: PaymentEntry, apartment_id: str) -> PaymentData:
    return PaymentData(
        apartment_id=apartment_id,
        year=entry.year,
        external_id=entry.external_id,
        date_from=entry.date_from,
        date_to=entry.date_to,
        opening_balance=entry.opening_balance,
        total_charges=entry.total_charges,
        closing_balance=entry.closing_balance,
        monthly_charges=list(entry.monthly_charges),
        monthly_payments=list(entry.monthly_payments),
    )


async def import_payments(uow: ImportUnitOfWork, apartments: ApartmentMap, entries: Sequence[PaymentEntry],
                          stats: EntityStats, errors: List[str]) -> None:
    """Create or update the yearly balances of each apartment."""
    stats.total = len(entries)
    resolved = resolve_apartments(entries, apartments.ids, stats, 'payment')
    if not resolved:
        return

    incoming = [to_payment_data(entry, apartment_id) for entry, apartment_id in resolved]
    existing = await uow.find_payments(
        sorted({data.apartment_id for data in incoming}),
        sorted({data.year for data in incoming}),
    )
    plan = plan_reconciliation(incoming, index_by_key(existing))
    stats.skipped += plan.duplicates

    await apply_creates(uow, EntityKind.PAYMENT, plan.creates, stats, errors, 'payments')
    await apply_updates(uow, EntityKind.PAYMENT, plan.updates, stats, errors, 'payment',
                        describe=lambda data: f"{data.external_id}/{data.year}")
