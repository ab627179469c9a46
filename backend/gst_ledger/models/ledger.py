"""
SQLAlchemy models for the money ledger
Project: GST Ledger

Contains:
- Payment: direct payment against one document
- Advance: pre-payment from a customer or to a supplier
- Allocation: part of an advance applied to one document
- Adjustment: signed correction of a document's amount due
"""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from gst_ledger.models import Base
from gst_ledger.models.mixins import TeamScopedMixin, TimestampMixin, UUIDMixin

# Payment methods
PAYMENT_METHODS = ("cash", "bank_transfer", "upi", "card", "cheque", "other")

# Advance directions
DIRECTION_CUSTOMER = "customer"
DIRECTION_SUPPLIER = "supplier"
ADVANCE_DIRECTIONS = (DIRECTION_CUSTOMER, DIRECTION_SUPPLIER)

# Adjustment types
ADJ_CREDIT_NOTE = "credit_note"
ADJ_DEBIT_NOTE = "debit_note"
ADJ_DISCOUNT = "discount"
ADJ_LATE_FEE = "late_fee"
ADJ_BANK_CHARGES = "bank_charges"
ADJ_OTHER = "other"
ADJUSTMENT_TYPES = (
    ADJ_CREDIT_NOTE,
    ADJ_DEBIT_NOTE,
    ADJ_DISCOUNT,
    ADJ_LATE_FEE,
    ADJ_BANK_CHARGES,
    ADJ_OTHER,
)


class Payment(Base, UUIDMixin, TimestampMixin, TeamScopedMixin):
    """
    Direct payment recorded against a single document.

    Immutable once created; deleting it reverses its effect on the
    document's amount_paid.

    Attributes:
        document_id: document being paid
        receipt_number: per-team receipt number (RCP-YYYY-NNNN)
        amount: amount received or paid (> 0)
        payment_date: value date
        method: cash | bank_transfer | upi | card | cheque | other
        reference_number: cheque number, UTR, etc.
    """

    __tablename__ = "payments"

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="RESTRICT"),
        nullable=False,
    )

    receipt_number: Mapped[str] = mapped_column(String(30), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    payment_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)

    method: Mapped[str] = mapped_column(String(20), nullable=False)

    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    __table_args__ = (
        Index("ix_payments_team_document", "team_id", "document_id"),
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, document={self.document_id}, amount={self.amount})>"


class Advance(Base, UUIDMixin, TimestampMixin, TeamScopedMixin):
    """
    Pre-payment not yet applied to a specific document.

    Customer advances are applied to invoices, supplier advances to bills.
    unallocated_amount only changes through the allocation engine.

    Attributes:
        advance_number: ADV-C-YYYY-NNNN or ADV-S-YYYY-NNNN
        direction: customer | supplier
        counterparty_id: customer or supplier that paid / was paid
        currency: ISO currency code
        total_amount: amount of the advance (> 0)
        unallocated_amount: remainder still available for allocation
        advance_date: value date
    """

    __tablename__ = "advances"

    advance_number: Mapped[str] = mapped_column(String(30), nullable=False)

    direction: Mapped[str] = mapped_column(String(10), nullable=False)

    counterparty_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    unallocated_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        doc="Written only by the allocation engine",
    )

    advance_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)

    method: Mapped[str] = mapped_column(String(20), nullable=False)

    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    @property
    def allocation_state(self) -> str:
        """unallocated | partially_allocated | fully_allocated"""
        if self.unallocated_amount == self.total_amount:
            return "unallocated"
        if self.unallocated_amount == 0:
            return "fully_allocated"
        return "partially_allocated"

    __table_args__ = (
        Index("ix_advances_team_number", "team_id", "advance_number", unique=True),
        Index("ix_advances_team_counterparty", "team_id", "counterparty_id"),
        CheckConstraint(
            "direction IN ('customer', 'supplier')",
            name="ck_advances_direction",
        ),
        CheckConstraint("total_amount > 0", name="ck_advances_total_positive"),
        CheckConstraint(
            "unallocated_amount >= 0 AND unallocated_amount <= total_amount",
            name="ck_advances_unallocated_range",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Advance(id={self.id}, number={self.advance_number}, "
            f"total={self.total_amount}, unallocated={self.unallocated_amount})>"
        )


class Allocation(Base, UUIDMixin, TimestampMixin, TeamScopedMixin):
    """Part of an advance applied to one document."""

    __tablename__ = "allocations"

    advance_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("advances.id", ondelete="RESTRICT"),
        nullable=False,
    )

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="RESTRICT"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    allocated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    __table_args__ = (
        Index("ix_allocations_advance", "advance_id"),
        Index("ix_allocations_document", "document_id"),
        CheckConstraint("amount > 0", name="ck_allocations_amount_positive"),
    )

    def __repr__(self) -> str:
        return f"<Allocation(advance={self.advance_id}, document={self.document_id}, amount={self.amount})>"


class Adjustment(Base, UUIDMixin, TimestampMixin, TeamScopedMixin):
    """
    Signed correction of a document's amount due.

    Credit notes and discounts are stored negative, debit notes and fees
    positive; 'other' keeps the sign it was given.
    """

    __tablename__ = "adjustments"

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="RESTRICT"),
        nullable=False,
    )

    adjustment_type: Mapped[str] = mapped_column(String(20), nullable=False)

    signed_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False)

    adjustment_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)

    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    __table_args__ = (
        Index("ix_adjustments_team_document", "team_id", "document_id"),
        CheckConstraint(
            "adjustment_type IN ('credit_note', 'debit_note', 'discount', "
            "'late_fee', 'bank_charges', 'other')",
            name="ck_adjustments_type",
        ),
        CheckConstraint("signed_amount <> 0", name="ck_adjustments_amount_nonzero"),
    )

    def __repr__(self) -> str:
        return (
            f"<Adjustment(id={self.id}, type={self.adjustment_type}, "
            f"amount={self.signed_amount})>"
        )
