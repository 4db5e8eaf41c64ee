"""
Parsers for the legacy property-management export files.
"""

from hoa_import.utils.parsers.legacy_codec import (
    decode_buffer,
    parse_date,
    parse_decimal,
    format_currency,
    format_date,
    format_decimal,
    format_period,
)
from hoa_import.utils.parsers.apartments import (
    get_unique_apartments,
    parse_apartment_buffer,
    split_owner_record,
)
from hoa_import.utils.parsers.charges import parse_charge_buffer
from hoa_import.utils.parsers.notifications import parse_notification_buffer
from hoa_import.utils.parsers.payments import parse_payment_buffer

__all__ = [
    'decode_buffer',
    'parse_date',
    'parse_decimal',
    'format_currency',
    'format_date',
    'format_decimal',
    'format_period',
    'get_unique_apartments',
    'parse_apartment_buffer',
    'split_owner_record',
    'parse_charge_buffer',
    'parse_notification_buffer',
    'parse_payment_buffer',
]
