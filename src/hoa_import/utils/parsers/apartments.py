"""
Parser for the apartment/owner roster (``lok.txt``).

Canonical line layout (14 ``#``-separated fields)::

    id#owner#?#externalId#address#building#number#postalCode#city#email#?#?#shareNumerator#shareDenominator

The format has no escaping, so an owner name containing ``#`` produces extra
fields. Everything beyond the canonical count belongs to the owner name.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List

from hoa_import.models.entries import ApartmentEntry
from hoa_import.utils.parsers.legacy_codec import decode_buffer, parse_decimal, split_fields, split_lines

logger = logging.getLogger(__name__)

CANONICAL_FIELD_COUNT = 14
MINIMUM_FIELD_COUNT = 13
OWNER_RECORD_PREFIX = 'W'

# Offsets relative to the external apartment id field
_ADDRESS = 1
_BUILDING = 2
_NUMBER = 3
_POSTAL_CODE = 4
_CITY = 5
_EMAIL = 6
_SHARE_NUMERATOR = 9
_SHARE_DENOMINATOR = 10


@dataclass
class OwnerRecordFields:
    """Raw fields of one roster line after the owner name has been reassembled."""
    record_id: str
    owner: str
    external_id: str
    address: str
    building: str
    number: str
    postal_code: str
    city: str
    email: str
    share_numerator: str
    share_denominator: str


def _field(fields: List[str], index: int) -> str:
    return fields[index] if index < len(fields) else ''


def split_owner_record(fields: List[str], canonical_field_count: int = CANONICAL_FIELD_COUNT) -> OwnerRecordFields:
    """
    Map the fields of one roster line onto named columns.

    When the line has more than ``canonical_field_count`` fields, the excess
    fields are re-joined with ``#`` into the owner name and every later column
    shifts right by the same amount.

    Args:
        fields: The line split on ``#``
        canonical_field_count: Field count of a line whose owner name has no ``#``

    Returns:
        OwnerRecordFields with untrimmed values
    """
    extra = max(len(fields) - canonical_field_count, 0)
    owner_end = 2 + extra
    external_id_index = 3 + extra

    return OwnerRecordFields(
        record_id=fields[0],
        owner='#'.join(fields[1:owner_end]),
        external_id=_field(fields, external_id_index),
        address=_field(fields, external_id_index + _ADDRESS),
        building=_field(fields, external_id_index + _BUILDING),
        number=_field(fields, external_id_index + _NUMBER),
        postal_code=_field(fields, external_id_index + _POSTAL_CODE),
        city=_field(fields, external_id_index + _CITY),
        email=_field(fields, external_id_index + _EMAIL),
        share_numerator=_field(fields, external_id_index + _SHARE_NUMERATOR),
        share_denominator=_field(fields, external_id_index + _SHARE_DENOMINATOR),
    )


def _share_value(raw: str) -> Decimal:
    try:
        return parse_decimal(raw)
    except ValueError:
        return Decimal(0)


def parse_apartment_line(line: str) -> ApartmentEntry:
    """
    Parse one roster line.

    Raises:
        ValueError: if the line has fewer than the minimum field count
    """
    fields = split_fields(line)
    if len(fields) < MINIMUM_FIELD_COUNT:
        raise ValueError(f"Expected at least {MINIMUM_FIELD_COUNT} fields, got {len(fields)}")

    record = split_owner_record(fields)
    record_id = record.record_id.strip()
    email = record.email.strip()

    return ApartmentEntry(
        external_owner_id=record_id,
        external_apartment_id=record.external_id.strip(),
        owner=record.owner.strip(),
        email=email or None,
        address=record.address.strip(),
        building=record.building.strip(),
        number=record.number.strip(),
        postal_code=record.postal_code.strip(),
        city=record.city.strip(),
        share_numerator=_share_value(record.share_numerator),
        share_denominator=_share_value(record.share_denominator),
        is_owner=record_id.startswith(OWNER_RECORD_PREFIX),
    )


def parse_apartment_buffer(content: bytes) -> List[ApartmentEntry]:
    """Decode and parse a whole ``lok.txt``; short lines are skipped."""
    entries: List[ApartmentEntry] = []
    for line_no, line in enumerate(split_lines(decode_buffer(content)), start=1):
        try:
            entries.append(parse_apartment_line(line))
        except ValueError as e:
            logger.debug(f"Skipping roster line {line_no}: {str(e)}", extra={'line_no': line_no})
    return entries


def get_unique_apartments(entries: List[ApartmentEntry]) -> List[ApartmentEntry]:
    """
    Collapse roster entries to one per apartment identity.

    Only owner records count; the first owner record for each
    ``externalOwnerId#externalApartmentId`` wins.
    """
    unique: Dict[str, ApartmentEntry] = {}
    for entry in entries:
        if entry.is_owner and entry.key not in unique:
            unique[entry.key] = entry
    return list(unique.values())
