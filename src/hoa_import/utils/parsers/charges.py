"""
Parser for monthly charges (``nal_czynsz.txt``).

Line layout::

    id#apartmentExternalId#dateFrom#dateTo#period#lineNo#description#quantity#unit#unitPrice#totalAmount
"""
import logging
from typing import List

from hoa_import.models.entries import ChargeEntry
from hoa_import.utils.parsers.legacy_codec import (
    decode_buffer,
    parse_date,
    parse_decimal,
    parse_int,
    split_fields,
    split_lines,
)

logger = logging.getLogger(__name__)

MINIMUM_FIELD_COUNT = 11


def _parse_period(value: str) -> str:
    period = value.strip()
    if len(period) != 6 or not period.isdigit():
        raise ValueError(f"Invalid period: {value!r}")
    return period


def parse_charge_fields(fields: List[str]) -> ChargeEntry:
    """
    Build a charge entry from an already split line.

    Raises:
        ValueError: if a date, number or period does not parse
    """
    (record_id, apartment_external_id, date_from, date_to, period, line_no,
     description, quantity, unit, unit_price, total_amount) = fields[:MINIMUM_FIELD_COUNT]

    return ChargeEntry(
        id=record_id.strip(),
        apartment_external_id=apartment_external_id.strip(),
        date_from=parse_date(date_from),
        date_to=parse_date(date_to),
        period=_parse_period(period),
        line_no=parse_int(line_no),
        description=description.strip(),
        quantity=parse_decimal(quantity),
        unit=unit.strip(),
        unit_price=parse_decimal(unit_price),
        total_amount=parse_decimal(total_amount),
    )


def parse_charge_buffer(content: bytes) -> List[ChargeEntry]:
    """
    Decode and parse a whole ``nal_czynsz.txt``.

    Short lines are skipped silently; lines whose values fail to parse are
    logged and skipped.
    """
    entries: List[ChargeEntry] = []
    for line_no, line in enumerate(split_lines(decode_buffer(content)), start=1):
        fields = split_fields(line)
        if len(fields) < MINIMUM_FIELD_COUNT:
            continue
        try:
            entries.append(parse_charge_fields(fields))
        except ValueError as e:
            logger.debug(f"Failed to parse charge line {line_no}: {str(e)}",
                         extra={'line_no': line_no, 'line': line})
    return entries
