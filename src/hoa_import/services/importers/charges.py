import logging
from typing import List, Sequence

from hoa_import.models.entries import ChargeEntry
from hoa_import.models.import_result import EntityStats
from hoa_import.models.records import ChargeData
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

DEFAULT_UPDATE_BATCH_SIZE = 100


def to_charge_data(entry: ChargeEntry, apartment_id: str) -> ChargeData:
    return ChargeData(
        apartment_id=apartment_id,
        period=entry.period,
        external_line_no=entry.line_no,
        date_from=entry.date_from,
        date_to=entry.date_to,
        description=entry.description,
        quantity=entry.quantity,
        unit=entry.unit,
        unit_price=entry.unit_price,
        total_amount=entry.total_amount,
    )


async def import_charges(uow: ImportUnitOfWork, apartments: ApartmentMap, entries: Sequence[ChargeEntry],
                         stats: EntityStats, errors: List[str],
                         update_batch_size: int = DEFAULT_UPDATE_BATCH_SIZE) -> None:
    """
    Create or update charges. Charges are a historical ledger: rows missing
    from the file are left alone.
    """
    stats.total = len(entries)
    resolved = resolve_apartments(entries, apartments.ids, stats, 'charge')
    if not resolved:
        return

    incoming = [to_charge_data(entry, apartment_id) for entry, apartment_id in resolved]
    existing = await uow.find_charges(
        sorted({data.apartment_id for data in incoming}),
        sorted({data.period for data in incoming}),
    )
    plan = plan_reconciliation(incoming, index_by_key(existing))
    stats.skipped += plan.duplicates

    await apply_creates(uow, EntityKind.CHARGE, plan.creates, stats, errors, 'charges')
    await apply_updates(uow, EntityKind.CHARGE, plan.updates, stats, errors, 'charge',
                        describe=lambda data: f"{data.period}/{data.external_line_no}",
                        batch_size=update_batch_size)
    logger.debug(f"Charges: {len(plan.creates)} new, {len(plan.updates)} changed, {plan.unchanged} unchanged")
