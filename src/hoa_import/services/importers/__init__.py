"""
Entity importers reconciling parsed entries with stored records.
"""

from hoa_import.services.importers.apartments import ApartmentMap, import_apartments
from hoa_import.services.importers.charges import import_charges
from hoa_import.services.importers.notifications import import_notifications
from hoa_import.services.importers.payments import import_payments

__all__ = [
    'ApartmentMap',
    'import_apartments',
    'import_charges',
    'import_notifications',
    'import_payments',
]
