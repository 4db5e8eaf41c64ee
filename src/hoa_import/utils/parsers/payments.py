"""
Parser for yearly payment balances (``wplaty.txt``).

Fixed-position records of at least 34 ``#``-separated fields:

    0 externalId, 1 apartmentCode, 2 year, 3 dateFrom, 4 dateTo,
    5 openingDebt, 6 openingSurplus, 7-8 reserved (not interpreted),
    9 + 2*m charge and 10 + 2*m payment for month m = 0..11,
    33 closingBalance
"""
import logging
from decimal import Decimal
from typing import List

from hoa_import.models.entries import ParseResult, PaymentEntry
from hoa_import.utils.parsers.legacy_codec import (
    FIELD_DELIMITER,
    decode_buffer,
    parse_date,
    parse_decimal,
    parse_int,
    split_fields,
)

logger = logging.getLogger(__name__)

MINIMUM_FIELD_COUNT = 34
MONTHS_PER_YEAR = 12

EXTERNAL_ID_INDEX = 0
APARTMENT_CODE_INDEX = 1
YEAR_INDEX = 2
DATE_FROM_INDEX = 3
DATE_TO_INDEX = 4
OPENING_DEBT_INDEX = 5
OPENING_SURPLUS_INDEX = 6
FIRST_MONTH_INDEX = 9
CLOSING_BALANCE_INDEX = 33


def _monthly_amount(fields: List[str], index: int) -> Decimal:
    """Blank monthly cells mean nothing was charged or paid that month."""
    value = fields[index].strip()
    return parse_decimal(value) if value else Decimal(0)


def parse_payment_fields(fields: List[str]) -> PaymentEntry:
    """
    Build a payment entry from a split record.

    The opening balance is ``openingSurplus - openingDebt`` and the total
    charges are recomputed from the twelve monthly charge cells.

    Raises:
        ValueError: if the year, a date or any amount does not parse
    """
    monthly_charges = []
    monthly_payments = []
    for month in range(MONTHS_PER_YEAR):
        monthly_charges.append(_monthly_amount(fields, FIRST_MONTH_INDEX + 2 * month))
        monthly_payments.append(_monthly_amount(fields, FIRST_MONTH_INDEX + 2 * month + 1))

    opening_debt = parse_decimal(fields[OPENING_DEBT_INDEX])
    opening_surplus = parse_decimal(fields[OPENING_SURPLUS_INDEX])

    return PaymentEntry(
        external_id=fields[EXTERNAL_ID_INDEX].strip(),
        apartment_code=fields[APARTMENT_CODE_INDEX].strip(),
        year=parse_int(fields[YEAR_INDEX]),
        date_from=parse_date(fields[DATE_FROM_INDEX]),
        date_to=parse_date(fields[DATE_TO_INDEX]),
        opening_balance=opening_surplus - opening_debt,
        total_charges=sum(monthly_charges, Decimal(0)),
        monthly_charges=monthly_charges,
        monthly_payments=monthly_payments,
        closing_balance=parse_decimal(fields[CLOSING_BALANCE_INDEX]),
    )


def parse_payment_buffer(content: bytes) -> ParseResult[PaymentEntry]:
    """Decode and parse a whole ``wplaty.txt``; malformed records are excluded."""
    result: ParseResult[PaymentEntry] = ParseResult()
    for line_no, raw_line in enumerate(decode_buffer(content).split('\n'), start=1):
        line = raw_line.strip()
        if FIELD_DELIMITER not in line:
            continue
        fields = split_fields(line)
        if len(fields) < MINIMUM_FIELD_COUNT:
            logger.debug(f"Skipping short payment record {line_no}", extra={'line_no': line_no})
            continue
        try:
            result.entries.append(parse_payment_fields(fields))
        except ValueError as e:
            logger.debug(f"Failed to parse payment record {line_no}: {str(e)}",
                         extra={'line_no': line_no, 'line': line})
    return result
