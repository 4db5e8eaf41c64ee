"""
Stored-state records for the entities the import pipeline reconciles.

Each entity has a ``*Data`` model holding the columns an import writes and a
record model adding the storage identifier. ``to_row``/``from_row`` convert
between the models and relational rows.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from hoa_import.models.entries import make_apartment_key

MONTH_NAMES: Tuple[str, ...] = (
    'january', 'february', 'march', 'april', 'may', 'june',
    'july', 'august', 'september', 'october', 'november', 'december',
)


class RecordModel(BaseModel):
    """Base for stored-state models."""

    model_config = ConfigDict(from_attributes=True)

    def to_row(self, fields: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """Column values for this model, optionally restricted to ``fields``."""
        include = set(fields) if fields is not None else None
        return self.model_dump(include=include)

    @classmethod
    def from_row(cls, row: Any):
        return cls.model_validate(row)


class HomeownersAssociation(RecordModel):
    id: str
    external_id: str
    name: str


class ApartmentData(RecordModel):
    hoa_id: str
    external_owner_id: str
    external_apartment_id: str
    owner: str
    email: Optional[str] = None
    address: str
    building: Optional[str] = None
    number: str
    postal_code: str
    city: str
    share_numerator: Decimal = Decimal(0)
    share_denominator: Decimal = Decimal(0)
    is_active: bool = True

    @property
    def key(self) -> str:
        return make_apartment_key(self.external_owner_id, self.external_apartment_id)


class Apartment(ApartmentData):
    id: str


class ChargeData(RecordModel):
    apartment_id: str
    period: str
    external_line_no: int
    date_from: date
    date_to: date
    description: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    total_amount: Decimal

    @property
    def key(self) -> Tuple[str, str, int]:
        return (self.apartment_id, self.period, self.external_line_no)


class Charge(ChargeData):
    id: str


class ChargeNotificationData(RecordModel):
    apartment_id: str
    line_no: int
    external_id: str
    description: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    total_amount: Decimal

    @property
    def key(self) -> Tuple[str, int, str]:
        return (self.apartment_id, self.line_no, self.external_id)


class ChargeNotification(ChargeNotificationData):
    id: str


class PaymentData(RecordModel):
    """
    Yearly balance of one apartment.

    Monthly figures are kept as two twelve-element lists; relational rows
    store them as ``<month>_charges``/``<month>_payments`` columns.
    """
    apartment_id: str
    year: int
    external_id: str
    date_from: date
    date_to: date
    opening_balance: Decimal
    total_charges: Decimal
    closing_balance: Decimal
    monthly_charges: List[Decimal]
    monthly_payments: List[Decimal]

    @field_validator('monthly_charges', 'monthly_payments')
    @classmethod
    def check_twelve_months(cls, v: List[Decimal]) -> List[Decimal]:
        if len(v) != 12:
            raise ValueError(f"Expected 12 monthly values, got {len(v)}")
        return v

    @property
    def key(self) -> Tuple[str, int]:
        return (self.apartment_id, self.year)

    def to_row(self, fields: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        wanted = set(fields) if fields is not None else set(type(self).model_fields)
        row = self.model_dump(include=wanted - {'monthly_charges', 'monthly_payments'})
        if 'monthly_charges' in wanted:
            for month, value in zip(MONTH_NAMES, self.monthly_charges):
                row[f"{month}_charges"] = value
        if 'monthly_payments' in wanted:
            for month, value in zip(MONTH_NAMES, self.monthly_payments):
                row[f"{month}_payments"] = value
        return row

    @classmethod
    def from_row(cls, row: Any):
        values = {name: getattr(row, name) for name in cls.model_fields
                  if name not in ('monthly_charges', 'monthly_payments')}
        values['monthly_charges'] = [getattr(row, f"{month}_charges") for month in MONTH_NAMES]
        values['monthly_payments'] = [getattr(row, f"{month}_payments") for month in MONTH_NAMES]
        return cls(**values)


class Payment(PaymentData):
    id: str
