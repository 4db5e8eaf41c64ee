"""
Models package for the HOA legacy data import.
"""

from hoa_import.models.entries import (
    ApartmentEntry,
    ChargeEntry,
    ChargeNotificationEntry,
    PaymentEntry,
    ParseResult,
    make_apartment_key,
)

from hoa_import.models.records import (
    HomeownersAssociation,
    Apartment,
    ApartmentData,
    Charge,
    ChargeData,
    ChargeNotification,
    ChargeNotificationData,
    Payment,
    PaymentData,
)

from hoa_import.models.import_result import (
    BatchImportResult,
    EntityStats,
    FileRole,
    HOAImportResult,
    ImportErrorDetail,
    ImportFileGroup,
    UploadedFile,
)

__all__ = [
    'ApartmentEntry',
    'ChargeEntry',
    'ChargeNotificationEntry',
    'PaymentEntry',
    'ParseResult',
    'make_apartment_key',
    'HomeownersAssociation',
    'Apartment',
    'ApartmentData',
    'Charge',
    'ChargeData',
    'ChargeNotification',
    'ChargeNotificationData',
    'Payment',
    'PaymentData',
    'BatchImportResult',
    'EntityStats',
    'FileRole',
    'HOAImportResult',
    'ImportErrorDetail',
    'ImportFileGroup',
    'UploadedFile',
]
