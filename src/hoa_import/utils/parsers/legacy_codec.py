"""
Decoding and value parsing for the legacy property-management exports.

The exports are single-byte ISO-8859-2 (Latin-2) text with ``#`` as the field
delimiter, ``DD/MM/YYYY`` dates and a comma as the decimal separator. The
``format_*`` helpers render parsed values back the way the portal displays
them.
"""
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Union

logger = logging.getLogger(__name__)

LEGACY_ENCODING = 'iso-8859-2'
FIELD_DELIMITER = '#'
DATE_FORMAT = '%d/%m/%Y'

POLISH_MONTH_NAMES = [
    'Styczeń',
    'Luty',
    'Marzec',
    'Kwiecień',
    'Maj',
    'Czerwiec',
    'Lipiec',
    'Sierpień',
    'Wrzesień',
    'Październik',
    'Listopad',
    'Grudzień',
]


def decode_buffer(content: bytes) -> str:
    """
    Decode a raw export into text.

    Every byte value has a Latin-2 mapping, so decoding never fails; the
    result is exactly what the exporting system wrote.
    """
    return content.decode(LEGACY_ENCODING)


def split_lines(text: str) -> List[str]:
    """Split decoded text on ``\\n`` and drop blank lines."""
    return [line for line in text.split('\n') if line.strip()]


def split_fields(line: str) -> List[str]:
    return line.split(FIELD_DELIMITER)


def parse_date(value: str) -> date:
    """
    Parse a ``DD/MM/YYYY`` date into a calendar date.

    Raises:
        ValueError: if the value is not a valid date in that format
    """
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def parse_decimal(value: str) -> Decimal:
    """
    Parse a comma-decimal number (``"245,00"`` -> ``Decimal("245.00")``).

    A dot is accepted as well, since some numeric columns are written that way.

    Raises:
        ValueError: if the value is empty, not a number, or not finite
    """
    normalized = value.strip().replace(',', '.')
    if not normalized:
        raise ValueError("Empty decimal value")
    try:
        result = Decimal(normalized)
    except InvalidOperation as e:
        raise ValueError(f"Invalid decimal value: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Non-finite decimal value: {value!r}")
    return result


def parse_int(value: str) -> int:
    """Parse a plain integer field; raises ValueError on anything else."""
    return int(value.strip())


def format_decimal(value: Union[Decimal, int]) -> str:
    """Render a number with a comma decimal separator, keeping its exact digits."""
    return format(Decimal(value), 'f').replace('.', ',')


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def format_period(period: str) -> str:
    """Render a ``YYYYMM`` period as ``<Polish month name> <year>``."""
    if len(period) == 6 and period.isdigit():
        month = int(period[4:6])
        if 1 <= month <= 12:
            return f"{POLISH_MONTH_NAMES[month - 1]} {period[0:4]}"
    return period


def format_currency(amount: Union[Decimal, int]) -> str:
    """Render an amount in PLN the Polish way: ``1 234,50 zł``."""
    quantized = Decimal(amount).quantize(Decimal('0.01'))
    grouped = f"{quantized:,.2f}".replace(',', ' ').replace('.', ',')
    return f"{grouped} zł"
