"""
Service orchestrating a batch import of legacy exports.

Files are grouped per HOA and each HOA is imported independently and
concurrently: its files are parsed up front, then every importer runs inside
one store transaction bounded by a timeout.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from hoa_import.models.entries import ApartmentEntry, ChargeEntry, ChargeNotificationEntry, PaymentEntry
from hoa_import.models.import_result import (
    BatchImportResult,
    EntityStats,
    HOAImportResult,
    ImportErrorDetail,
    ImportFileGroup,
    UploadedFile,
)
from hoa_import.services.importers import import_apartments, import_charges, import_notifications, import_payments
from hoa_import.utils.db.base import ImportStore, ImportUnitOfWork, TransactionTimeoutError
from hoa_import.utils.file_groups import group_files_by_hoa
from hoa_import.utils.import_config import ImportConfig
from hoa_import.utils.parsers import (
    get_unique_apartments,
    parse_apartment_buffer,
    parse_charge_buffer,
    parse_notification_buffer,
    parse_payment_buffer,
)

logger = logging.getLogger(__name__)


@dataclass
class ParsedHOAFiles:
    """Parsed content of one HOA's file group; ``None`` marks a file not supplied."""
    apartments: List[ApartmentEntry]
    charges: Optional[List[ChargeEntry]] = None
    notifications: Optional[List[ChargeNotificationEntry]] = None
    payments: Optional[List[PaymentEntry]] = None


def parse_file_group(group: ImportFileGroup) -> ParsedHOAFiles:
    """Parse every supplied file of a group; the apartments file must be present."""
    parsed = ParsedHOAFiles(apartments=get_unique_apartments(parse_apartment_buffer(group.apartments_file.content)))
    if group.charges_file is not None:
        parsed.charges = parse_charge_buffer(group.charges_file.content)
    if group.notifications_file is not None:
        parsed.notifications = parse_notification_buffer(group.notifications_file.content).entries
    if group.payments_file is not None:
        parsed.payments = parse_payment_buffer(group.payments_file.content).entries
    return parsed


class BatchImportService:
    """Service importing batches of legacy export files into the store."""

    def __init__(self, store: ImportStore, config: Optional[ImportConfig] = None):
        self.store = store
        self.config = config or ImportConfig.from_environment()

    async def process_batch_import(self, files: Sequence[UploadedFile], clean_import: bool = False) -> BatchImportResult:
        """
        Import a batch of uploaded files.

        Never raises for data problems: grouping errors, missing apartment
        files and failed HOA transactions are all reported in the result.

        Args:
            files: Uploaded files named ``{hoaExternalId}/{fileName}``
            clean_import: Caller's clean-import flag, recorded in the logs only

        Returns:
            BatchImportResult with one entry in ``results`` per imported HOA
        """
        errors: List[ImportErrorDetail] = []
        groups = group_files_by_hoa(files, errors)
        logger.info(f"Starting batch import of {len(files)} files for {len(groups)} HOAs",
                    extra={'file_count': len(files), 'hoa_count': len(groups), 'clean_import': clean_import})

        hoa_ids = list(groups)
        outcomes = await asyncio.gather(
            *(self.import_hoa(hoa_id, groups[hoa_id]) for hoa_id in hoa_ids),
            return_exceptions=True,
        )

        results: List[HOAImportResult] = []
        for hoa_id, outcome in zip(hoa_ids, outcomes):
            if isinstance(outcome, ImportErrorDetail):
                errors.append(outcome)
            elif isinstance(outcome, BaseException):
                logger.error(f"Import task for HOA {hoa_id} failed: {str(outcome)}", extra={'hoa_id': hoa_id})
                errors.append(ImportErrorDetail(hoa_id=hoa_id, error=str(outcome) or type(outcome).__name__))
            else:
                results.append(outcome)
                if outcome.errors and outcome.apartments.total == 0:
                    errors.append(ImportErrorDetail(hoa_id=hoa_id, error='; '.join(outcome.errors)))

        success = not errors and all(not result.errors for result in results)
        logger.info(f"Batch import finished: {len(results)} HOAs imported, {len(errors)} errors, success={success}")
        return BatchImportResult(success=success, results=results, errors=errors)

    async def import_hoa(self, hoa_id: str, group: ImportFileGroup) -> Union[HOAImportResult, ImportErrorDetail]:
        """Import one HOA's file group; problems are returned, not raised."""
        if group.apartments_file is None:
            logger.warning(f"Missing lok.txt for HOA {hoa_id}", extra={'hoa_id': hoa_id})
            return ImportErrorDetail(
                hoa_id=hoa_id,
                error=f"Missing lok.txt for HOA {hoa_id}. The apartments file is required.",
            )

        try:
            parsed = parse_file_group(group)
        except Exception as e:
            logger.error(f"Failed to parse files for HOA {hoa_id}: {str(e)}", exc_info=True, extra={'hoa_id': hoa_id})
            return ImportErrorDetail(hoa_id=hoa_id, error=f"Failed to parse files: {str(e)}")

        logger.info(f"Starting import for HOA {hoa_id}", extra={'hoa_id': hoa_id})
        result = HOAImportResult(hoa_id=hoa_id)
        try:
            async with self.store.transaction() as uow:
                try:
                    await asyncio.wait_for(
                        self._run_importers(uow, hoa_id, parsed, result),
                        timeout=self.config.transaction_timeout_seconds,
                    )
                except asyncio.TimeoutError as e:
                    raise TransactionTimeoutError(
                        f"Import transaction for HOA {hoa_id} timed out after "
                        f"{self.config.transaction_timeout_seconds}s"
                    ) from e
        except Exception as e:
            logger.error(f"Import failed for HOA {hoa_id}: {str(e)}", exc_info=True, extra={'hoa_id': hoa_id})
            return HOAImportResult(hoa_id=hoa_id, errors=[str(e)])

        logger.info(f"Import completed for HOA {hoa_id}", extra={'hoa_id': hoa_id, 'error_count': len(result.errors)})
        return result

    async def _run_importers(self, uow: ImportUnitOfWork, hoa_id: str, parsed: ParsedHOAFiles,
                             result: HOAImportResult) -> None:
        hoa = await uow.upsert_hoa(hoa_id)

        apartment_map = await import_apartments(uow, hoa, parsed.apartments, result.apartments, result.errors)
        logger.info(
            f"Apartments for HOA {hoa_id}: {result.apartments.created} created, {result.apartments.updated} updated, "
            f"{result.apartments.deleted} deactivated",
            extra={'hoa_id': hoa_id}
        )

        if parsed.charges is not None:
            result.charges = EntityStats()
            await import_charges(uow, apartment_map, parsed.charges, result.charges, result.errors,
                                 update_batch_size=self.config.charge_update_batch_size)
            logger.info(
                f"Charges for HOA {hoa_id}: {result.charges.created} created, {result.charges.updated} updated, "
                f"{result.charges.skipped} skipped",
                extra={'hoa_id': hoa_id}
            )

        if parsed.notifications is not None:
            result.notifications = EntityStats()
            await import_notifications(uow, hoa, apartment_map, parsed.notifications, result.notifications,
                                       result.errors)
            logger.info(
                f"Notifications for HOA {hoa_id}: {result.notifications.created} created, "
                f"{result.notifications.updated} updated, {result.notifications.deleted} deleted",
                extra={'hoa_id': hoa_id}
            )

        if parsed.payments is not None:
            result.payments = EntityStats()
            await import_payments(uow, apartment_map, parsed.payments, result.payments, result.errors)
            logger.info(
                f"Payments for HOA {hoa_id}: {result.payments.created} created, {result.payments.updated} updated, "
                f"{result.payments.skipped} skipped",
                extra={'hoa_id': hoa_id}
            )
