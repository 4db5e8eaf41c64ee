"""
Parser for current-period charge notifications (``pow_czynsz.txt``).

The file is a free-form header, a separator line holding a single ``#``,
the data lines, and a free-form footer. Header and footer lengths vary, so
sections are recognised by line shape with a small state machine:

    BEFORE_DATA --(line with delimiter)--> IN_DATA --(line without delimiter)--> AFTER_DATA

Data line layout::

    externalId#apartmentCode#lineNo#description#quantity#unit#unitPrice#totalAmount
"""
import logging
from enum import Enum
from typing import List, Optional

from hoa_import.models.entries import ChargeNotificationEntry, ParseResult
from hoa_import.utils.parsers.legacy_codec import FIELD_DELIMITER, decode_buffer, parse_decimal, parse_int, split_fields

logger = logging.getLogger(__name__)

MINIMUM_FIELD_COUNT = 8


class SectionState(str, Enum):
    BEFORE_DATA = "before-data"
    IN_DATA = "in-data"
    AFTER_DATA = "after-data"


def is_separator_line(line: str) -> bool:
    """A separator carries no data: blank, or starting with the delimiter."""
    return not line or line.startswith(FIELD_DELIMITER)


def is_data_line(line: str) -> bool:
    return FIELD_DELIMITER in line and not line.startswith(FIELD_DELIMITER)


def next_state(state: SectionState, line: str) -> SectionState:
    """Transition for one stripped, non-separator line."""
    if state == SectionState.BEFORE_DATA and is_data_line(line):
        return SectionState.IN_DATA
    if state == SectionState.IN_DATA and not is_data_line(line):
        return SectionState.AFTER_DATA
    return state


def parse_notification_fields(fields: List[str]) -> ChargeNotificationEntry:
    """
    Build a notification entry from a split data line.

    Raises:
        ValueError: if the line number or any amount does not parse
    """
    (external_id, apartment_code, line_no, description,
     quantity, unit, unit_price, total_amount) = fields[:MINIMUM_FIELD_COUNT]

    return ChargeNotificationEntry(
        external_id=external_id.strip(),
        apartment_code=apartment_code.strip(),
        line_no=parse_int(line_no),
        description=description.strip(),
        quantity=parse_decimal(quantity),
        unit=unit.strip(),
        unit_price=parse_decimal(unit_price),
        total_amount=parse_decimal(total_amount),
    )


def _parse_data_line(line: str, line_no: int) -> Optional[ChargeNotificationEntry]:
    fields = split_fields(line)
    if len(fields) < MINIMUM_FIELD_COUNT:
        logger.debug(f"Skipping short notification line {line_no}", extra={'line_no': line_no})
        return None
    try:
        return parse_notification_fields(fields)
    except ValueError as e:
        logger.debug(f"Failed to parse notification line {line_no}: {str(e)}",
                     extra={'line_no': line_no, 'line': line})
        return None


def parse_notification_buffer(content: bytes) -> ParseResult[ChargeNotificationEntry]:
    """
    Decode and parse a whole ``pow_czynsz.txt``.

    Returns:
        ParseResult with the data entries plus the header and footer lines
    """
    result: ParseResult[ChargeNotificationEntry] = ParseResult()
    state = SectionState.BEFORE_DATA

    for line_no, raw_line in enumerate(decode_buffer(content).split('\n'), start=1):
        line = raw_line.strip()
        if is_separator_line(line):
            continue

        state = next_state(state, line)

        if state == SectionState.BEFORE_DATA:
            result.header.append(line)
        elif state == SectionState.IN_DATA:
            entry = _parse_data_line(line, line_no)
            if entry is not None:
                result.entries.append(entry)
        elif is_data_line(line):
            logger.debug(f"Ignoring data-shaped line {line_no} after the footer started",
                         extra={'line_no': line_no})
        else:
            result.footer.append(line)

    return result
