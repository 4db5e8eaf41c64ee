import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from hoa_import.models.entries import ApartmentEntry
from hoa_import.models.import_result import EntityStats
from hoa_import.models.records import ApartmentData, HomeownersAssociation
from hoa_import.services.importers.base import apply_creates, apply_updates, index_by_key, plan_reconciliation
from hoa_import.utils.db.base import EntityKind, ImportUnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class ApartmentMap:
    """Identity resolution table shared by the importers that follow apartments."""
    ids: Dict[str, str] = field(default_factory=dict)  # "ownerId#apartmentCode" -> apartment id


def to_apartment_data(hoa_id: str, entry: ApartmentEntry) -> ApartmentData:
    return ApartmentData(
        hoa_id=hoa_id,
        external_owner_id=entry.external_owner_id,
        external_apartment_id=entry.external_apartment_id,
        owner=entry.owner,
        email=entry.email,
        address=entry.address,
        building=entry.building,
        number=entry.number,
        postal_code=entry.postal_code,
        city=entry.city,
        share_numerator=entry.share_numerator,
        share_denominator=entry.share_denominator,
        is_active=True,
    )


async def import_apartments(uow: ImportUnitOfWork, hoa: HomeownersAssociation, entries: Sequence[ApartmentEntry],
                            stats: EntityStats, errors: List[str]) -> ApartmentMap:
    """
    Reconcile the HOA's apartments with the unique owner records of ``lok.txt``.

    New apartments are created, changed ones updated (which also reactivates
    apartments that had been deactivated), and active apartments missing
    from the file are deactivated and counted in ``stats.deleted``.

    Returns:
        Map of apartment key to id for the HOA's active apartments
    """
    stats.total = len(entries)
    incoming = [to_apartment_data(hoa.id, entry) for entry in entries]

    existing = await uow.find_apartments(hoa.id)
    plan = plan_reconciliation(incoming, index_by_key(existing))
    stats.skipped += plan.duplicates

    await apply_creates(uow, EntityKind.APARTMENT, plan.creates, stats, errors, 'apartments')
    await apply_updates(uow, EntityKind.APARTMENT, plan.updates, stats, errors, 'apartment',
                        describe=lambda data: data.key)

    keys_in_file = {data.key for data in incoming}
    stale_ids = [apartment.id for apartment in existing
                 if apartment.is_active and apartment.key not in keys_in_file]
    if stale_ids:
        stats.deleted += await uow.set_apartments_active(stale_ids, False)
        logger.info(f"Deactivated {len(stale_ids)} apartments missing from import for HOA {hoa.external_id}",
                    extra={'hoa_id': hoa.external_id})

    active = [apartment for apartment in await uow.find_apartments(hoa.id) if apartment.is_active]
    return ApartmentMap(ids={apartment.key: apartment.id for apartment in active})
