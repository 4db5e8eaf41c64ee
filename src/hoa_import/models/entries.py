"""
Parsed line entries produced by the legacy record parsers.

Entries are plain dataclasses: they carry exactly what one line of a legacy
export said, already decoded and typed, and nothing about stored state.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

T = TypeVar('T')


def make_apartment_key(external_owner_id: str, external_apartment_id: str) -> str:
    """Reconciliation identity of an apartment: ``externalOwnerId#externalApartmentId``."""
    return f"{external_owner_id}#{external_apartment_id}"


@dataclass
class ApartmentEntry:
    """One owner or tenant line from ``lok.txt``."""
    external_owner_id: str
    external_apartment_id: str
    owner: str
    email: Optional[str]
    address: str
    building: str
    number: str
    postal_code: str
    city: str
    share_numerator: Decimal
    share_denominator: Decimal
    is_owner: bool

    @property
    def key(self) -> str:
        return make_apartment_key(self.external_owner_id, self.external_apartment_id)


@dataclass
class ChargeEntry:
    """One monthly charge line from ``nal_czynsz.txt``."""
    id: str
    apartment_external_id: str
    date_from: date
    date_to: date
    period: str
    line_no: int
    description: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    total_amount: Decimal

    @property
    def apartment_key(self) -> str:
        return make_apartment_key(self.id, self.apartment_external_id)


@dataclass
class ChargeNotificationEntry:
    """One current-period billing notice line from ``pow_czynsz.txt``."""
    external_id: str
    apartment_code: str
    line_no: int
    description: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    total_amount: Decimal

    @property
    def apartment_key(self) -> str:
        return make_apartment_key(self.external_id, self.apartment_code)


@dataclass
class PaymentEntry:
    """One yearly balance record from ``wplaty.txt``."""
    external_id: str
    apartment_code: str
    year: int
    date_from: date
    date_to: date
    opening_balance: Decimal
    total_charges: Decimal
    monthly_charges: List[Decimal]
    monthly_payments: List[Decimal]
    closing_balance: Decimal

    @property
    def apartment_key(self) -> str:
        return make_apartment_key(self.external_id, self.apartment_code)


@dataclass
class ParseResult(Generic[T]):
    """Entries of one file plus any header/footer lines the format carries."""
    entries: List[T] = field(default_factory=list)
    header: List[str] = field(default_factory=list)
    footer: List[str] = field(default_factory=list)
