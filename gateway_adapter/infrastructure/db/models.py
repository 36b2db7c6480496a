from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Country(Base):
    __tablename__ = "countries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    iso: Mapped[str] = mapped_column(String(2), nullable=False, unique=True)
    iso3: Mapped[str] = mapped_column(String(3), nullable=False, unique=True)


class State(Base):
    __tablename__ = "states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    country_id: Mapped[int] = mapped_column(Integer, ForeignKey("countries.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    abbr: Mapped[str] = mapped_column(String(16), nullable=False)


class Address(Base):
    __tablename__ = "addresses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    firstname: Mapped[str] = mapped_column(String(128), nullable=False)
    lastname: Mapped[str] = mapped_column(String(128), nullable=False)
    company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address1: Mapped[str] = mapped_column(String(255), nullable=False)
    address2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    zipcode: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    state_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("states.id"), nullable=True)
    state_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    country_id: Mapped[int] = mapped_column(Integer, ForeignKey("countries.id"), nullable=False)

    state: Mapped[Optional["State"]] = relationship()
    country: Mapped["Country"] = relationship()


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal(0))
    bill_address_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("addresses.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    bill_address: Mapped[Optional["Address"]] = relationship()
    payments: Mapped[list["Payment"]] = relationship(back_populates="order")


class CreditCard(Base):
    """A customer's card. Only the vault and display columns are written by the gateway."""

    __tablename__ = "credit_cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    month: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cc_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    last_digits: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)
    gateway_customer_profile_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    gateway_payment_profile_id: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    payments: Mapped[list["Payment"]] = relationship(
        back_populates="source", order_by="Payment.id"
    )

    # Raw card data lives only on the instance for the request that carries it.
    number = None
    verification_value = None


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    identifier: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, default=lambda: uuid.uuid4().hex[:8].upper()
    )
    order_id: Mapped[int] = mapped_column(Integer, ForeignKey("orders.id"), nullable=False)
    source_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("credit_cards.id"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    state: Mapped[str] = mapped_column(String(32), nullable=False, default="checkout", index=True)
    response_code: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    avs_response: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    order: Mapped["Order"] = relationship(back_populates="payments")
    source: Mapped[Optional["CreditCard"]] = relationship(back_populates="payments")
