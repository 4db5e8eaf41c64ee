"""
Relational schema backing the import store.
"""
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def new_record_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Unscaled so stored values read back equal to the parsed source values
DECIMAL = Numeric()


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class HomeownersAssociationRow(TimestampMixin, Base):
    __tablename__ = "homeowners_associations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_record_id)
    external_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class ApartmentRow(TimestampMixin, Base):
    __tablename__ = "apartments"
    __table_args__ = (
        UniqueConstraint("hoa_id", "external_owner_id", "external_apartment_id", name="uq_apartment_identity"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_record_id)
    hoa_id: Mapped[str] = mapped_column(ForeignKey("homeowners_associations.id", ondelete="CASCADE"), index=True)
    external_owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    external_apartment_id: Mapped[str] = mapped_column(String(128), nullable=False)
    owner: Mapped[str] = mapped_column(String(512), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    building: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    number: Mapped[str] = mapped_column(String(32), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(16), nullable=False)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    share_numerator: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    share_denominator: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ChargeRow(TimestampMixin, Base):
    __tablename__ = "charges"
    __table_args__ = (
        UniqueConstraint("apartment_id", "period", "external_line_no", name="uq_charge_identity"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_record_id)
    apartment_id: Mapped[str] = mapped_column(ForeignKey("apartments.id", ondelete="CASCADE"), index=True)
    period: Mapped[str] = mapped_column(String(6), nullable=False)  # YYYYMM
    external_line_no: Mapped[int] = mapped_column(Integer, nullable=False)
    date_from: Mapped[date] = mapped_column(Date, nullable=False)
    date_to: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(512), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False)


class ChargeNotificationRow(TimestampMixin, Base):
    __tablename__ = "charge_notifications"
    __table_args__ = (
        UniqueConstraint("apartment_id", "line_no", "external_id", name="uq_charge_notification_identity"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_record_id)
    apartment_id: Mapped[str] = mapped_column(ForeignKey("apartments.id", ondelete="CASCADE"), index=True)
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)
    external_id: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(String(512), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False)


class PaymentRow(TimestampMixin, Base):
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("apartment_id", "year", name="uq_payment_identity"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_record_id)
    apartment_id: Mapped[str] = mapped_column(ForeignKey("apartments.id", ondelete="CASCADE"), index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    external_id: Mapped[str] = mapped_column(String(64), nullable=False)
    date_from: Mapped[date] = mapped_column(Date, nullable=False)
    date_to: Mapped[date] = mapped_column(Date, nullable=False)
    opening_balance: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False)
    total_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False)
    closing_balance: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False)

    january_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    february_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    march_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    april_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    may_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    june_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    july_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    august_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    september_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    october_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    november_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    december_charges: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)

    january_payments: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    february_payments: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    march_payments: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    april_payments: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    may_payments: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    june_payments: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    july_payments: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    august_payments: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    september_payments: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    october_payments: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    november_payments: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
    december_payments: Mapped[Decimal] = mapped_column(DECIMAL, nullable=False, default=0)
