import logging
from typing import List, Sequence

from hoa_import.models.entries import ChargeNotificationEntry
from hoa_import.models.import_result import EntityStats
from hoa_import.models.records import ChargeNotificationData, HomeownersAssociation
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


def to_notification_data(entry: ChargeNotificationEntry, apartment_id: str) -> ChargeNotificationData:
    return ChargeNotificationData(
        apartment_id=apartment_id,
        line_no=entry.line_no,
        external_id=entry.external_id,
        description=entry.description,
        quantity=entry.quantity,
        unit=entry.unit,
        unit_price=entry.unit_price,
        total_amount=entry.total_amount,
    )


async def import_notifications(uow: ImportUnitOfWork, hoa: HomeownersAssociation, apartments: ApartmentMap,
                               entries: Sequence[ChargeNotificationEntry],
                               stats: EntityStats, errors: List[str]) -> None:
    """
    Fully synchronize the HOA's charge notifications with ``pow_czynsz.txt``.

    Stored notifications whose key is not in the file are hard-deleted, also
    when the file yields no resolvable entries at all.
    """
    stats.total = len(entries)
    resolved = resolve_apartments(entries, apartments.ids, stats, 'notification')
    incoming = [to_notification_data(entry, apartment_id) for entry, apartment_id in resolved]

    existing = await uow.find_notifications(hoa.id)
    plan = plan_reconciliation(incoming, index_by_key(existing))
    stats.skipped += plan.duplicates

    await apply_creates(uow, EntityKind.NOTIFICATION, plan.creates, stats, errors, 'notifications')
    await apply_updates(uow, EntityKind.NOTIFICATION, plan.updates, stats, errors, 'notification',
                        describe=lambda data: data.external_id)

    keys_in_file = {data.key for data in incoming}
    stale_ids = [notification.id for notification in existing if notification.key not in keys_in_file]
    if stale_ids:
        stats.deleted += await uow.delete(EntityKind.NOTIFICATION, stale_ids)
        logger.debug(f"Deleted {len(stale_ids)} stale notifications for HOA {hoa.external_id}")
