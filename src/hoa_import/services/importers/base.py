"""
Reconciliation steps shared by the entity importers.

An importer turns parsed entries into ``*Data`` records, indexes the stored
records by identity key, and then applies the resulting plan: one bulk
insert for new records and field-level updates for changed ones. Each write
step runs in its own savepoint so a failed step is rolled back alone,
reported into the HOA's error list and counted as skipped.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from hoa_import.models.import_result import EntityStats
from hoa_import.models.records import RecordModel
from hoa_import.utils.db.base import EntityKind, ImportUnitOfWork

logger = logging.getLogger(__name__)

D = TypeVar('D', bound=RecordModel)


@dataclass
class PendingUpdate(Generic[D]):
    record_id: str
    data: D
    fields: List[str]


@dataclass
class ReconcilePlan(Generic[D]):
    creates: List[D] = field(default_factory=list)
    updates: List[PendingUpdate[D]] = field(default_factory=list)
    unchanged: int = 0
    duplicates: int = 0


def changed_fields(existing: RecordModel, incoming: RecordModel) -> List[str]:
    """Names of the fields of ``incoming`` whose value differs from ``existing``."""
    return [
        name for name in type(incoming).model_fields
        if getattr(existing, name) != getattr(incoming, name)
    ]


def plan_reconciliation(incoming: Iterable[D], existing: Mapping[Hashable, RecordModel]) -> ReconcilePlan[D]:
    """
    Partition incoming records into creates and updates.

    Records are matched on their ``key``. A matched record becomes an update
    only if at least one field differs. A key repeated within ``incoming``
    keeps its first occurrence; later ones are counted in ``duplicates``.
    """
    plan: ReconcilePlan[D] = ReconcilePlan()
    seen = set()
    for data in incoming:
        key = data.key
        if key in seen:
            plan.duplicates += 1
            continue
        seen.add(key)

        current = existing.get(key)
        if current is None:
            plan.creates.append(data)
            continue
        fields = changed_fields(current, data)
        if fields:
            plan.updates.append(PendingUpdate(record_id=current.id, data=data, fields=fields))
        else:
            plan.unchanged += 1
    return plan


async def apply_creates(uow: ImportUnitOfWork, kind: EntityKind, creates: Sequence[RecordModel],
                        stats: EntityStats, errors: List[str], label: str) -> None:
    """Bulk-insert new records; identity duplicates the store ignores are counted as skipped."""
    if not creates:
        return
    try:
        async with uow.savepoint():
            inserted = await uow.bulk_insert(kind, creates)
    except Exception as e:
        logger.error(f"Failed to create {len(creates)} {label}: {str(e)}", exc_info=True,
                     extra={'entity': kind.value})
        errors.append(f"Failed to create {label}: {str(e)}")
        stats.skipped += len(creates)
        return
    stats.created += inserted
    stats.skipped += len(creates) - inserted


async def apply_updates(uow: ImportUnitOfWork, kind: EntityKind, updates: Sequence[PendingUpdate],
                        stats: EntityStats, errors: List[str], label: str,
                        describe: Callable[[RecordModel], str], batch_size: int = 1) -> None:
    """
    Write changed fields of matched records, ``batch_size`` updates per savepoint.

    A failing batch is rolled back as a whole and all of its records are
    counted as skipped.
    """
    for start in range(0, len(updates), batch_size):
        batch = updates[start:start + batch_size]
        try:
            async with uow.savepoint():
                for pending in batch:
                    await uow.update(kind, pending.record_id, pending.data, pending.fields)
        except Exception as e:
            subject = describe(batch[0].data) if len(batch) == 1 else f"batch of {len(batch)}"
            logger.error(f"Failed to update {label} {subject}: {str(e)}", exc_info=True,
                         extra={'entity': kind.value})
            errors.append(f"Failed to update {label} {subject}: {str(e)}")
            stats.skipped += len(batch)
            continue
        stats.updated += len(batch)


def index_by_key(records: Iterable[RecordModel]) -> Dict[Hashable, RecordModel]:
    return {record.key: record for record in records}


def resolve_apartments(entries: Iterable, apartment_ids: Mapping[str, str],
                       stats: EntityStats, entity: str) -> List[Tuple[object, str]]:
    """
    Pair entries with the internal id of the apartment they reference.

    Entries whose apartment key is not in the map are counted as skipped.
    """
    resolved = []
    for entry in entries:
        apartment_id: Optional[str] = apartment_ids.get(entry.apartment_key)
        if apartment_id is None:
            logger.debug(f"Skipping {entity} for unknown apartment {entry.apartment_key}",
                         extra={'apartment_key': entry.apartment_key})
            stats.skipped += 1
            continue
        resolved.append((entry, apartment_id))
    return resolved
