"""
SQLAlchemy models for balance-bearing documents
Project: GST Ledger

Contains:
- Document: an invoice (customer) or a supplier bill
- DocumentLine: priced line items of a document
"""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import List

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
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gst_ledger.models import Base
from gst_ledger.models.mixins import (
    LineAmountsMixin,
    TeamScopedMixin,
    TimestampMixin,
    UUIDMixin,
)

# Document kinds
KIND_INVOICE = "invoice"
KIND_BILL = "bill"
DOCUMENT_KINDS = (KIND_INVOICE, KIND_BILL)

# Document statuses
STATUS_DRAFT = "draft"
STATUS_SENT = "sent"
STATUS_PAID = "paid"
STATUS_CANCELLED = "cancelled"
DOCUMENT_STATUSES = (STATUS_DRAFT, STATUS_SENT, STATUS_PAID, STATUS_CANCELLED)

# Payment statuses
PAYMENT_UNPAID = "unpaid"
PAYMENT_PARTIAL = "partial"
PAYMENT_PAID = "paid"
PAYMENT_STATUSES = (PAYMENT_UNPAID, PAYMENT_PARTIAL, PAYMENT_PAID)


class Document(Base, UUIDMixin, TimestampMixin, TeamScopedMixin):
    """
    Invoice or supplier bill.

    Both kinds share the same ledger behaviour; `kind` only tells which
    side the counterparty is on (customer for invoices, supplier for bills).

    Attributes:
        kind: 'invoice' or 'bill'
        document_number: per-team number (INV-YYYY-NNNN / BILL-YYYY-NNNN)
        counterparty_id: customer or supplier id (owned by the CRM collaborator)
        document_date: date used for GST period locking
        due_date: payment due date
        currency: ISO currency code
        subtotal: sum of line subtotals
        total_discount: sum of line discounts
        total_tax: sum of line taxes
        total_amount: sum of line totals, fixed while the document is a draft
        amount_paid: payments + allocated advances
        amount_due: total_amount - amount_paid + net adjustments
        status: draft | sent | paid | cancelled
        payment_status: unpaid | partial | paid
        sent_at: when the document left draft
        cancelled_at: when the document was cancelled
        cancel_reason: free-text reason given on cancellation
        created_by: actor that created the document

    Relationships:
        lines: priced line items
    """

    __tablename__ = "documents"

    # ------------------------------------------------------------
    # Identification columns
    # ------------------------------------------------------------
    kind: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        doc="invoice | bill",
    )

    document_number: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        doc="Per-team document number",
    )

    counterparty_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        doc="Customer (invoice) or supplier (bill)",
    )

    document_date: Mapped[datetime.date] = mapped_column(
        Date,
        nullable=False,
        doc="Document date, checked against GST period locks",
    )

    due_date: Mapped[datetime.date | None] = mapped_column(
        Date,
        nullable=True,
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )

    # ------------------------------------------------------------
    # Amount columns
    # ------------------------------------------------------------
    subtotal: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    total_discount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    total_tax: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        doc="Sum of line totals",
    )

    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        doc="Written only by the balance service",
    )

    amount_due: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        doc="Written only by the balance service",
    )

    # ------------------------------------------------------------
    # Status columns
    # ------------------------------------------------------------
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    payment_status: Mapped[str] = mapped_column(String(20), nullable=False)

    sent_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    cancelled_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    cancel_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    lines: Mapped[List["DocumentLine"]] = relationship(
        "DocumentLine",
        back_populates="document",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="DocumentLine.line_number",
        doc="Line items",
    )

    # ------------------------------------------------------------
    # Indexes and constraints
    # ------------------------------------------------------------
    __table_args__ = (
        Index("ix_documents_team_number", "team_id", "document_number", unique=True),
        Index("ix_documents_team_counterparty", "team_id", "counterparty_id"),
        Index("ix_documents_team_date", "team_id", "document_date"),
        CheckConstraint("kind IN ('invoice', 'bill')", name="ck_documents_kind"),
        CheckConstraint(
            "status IN ('draft', 'sent', 'paid', 'cancelled')",
            name="ck_documents_status",
        ),
        CheckConstraint(
            "payment_status IN ('unpaid', 'partial', 'paid')",
            name="ck_documents_payment_status",
        ),
        CheckConstraint("total_amount >= 0", name="ck_documents_total_positive"),
        CheckConstraint("amount_paid >= 0", name="ck_documents_paid_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<Document(id={self.id}, number={self.document_number}, "
            f"total={self.total_amount}, due={self.amount_due})>"
        )


class DocumentLine(Base, UUIDMixin, TimestampMixin, LineAmountsMixin):
    """Priced line item of a document."""

    __tablename__ = "document_lines"

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    document: Mapped["Document"] = relationship(
        "Document",
        back_populates="lines",
    )

    __table_args__ = (
        Index("ix_document_lines_number", "document_id", "line_number"),
        CheckConstraint("quantity > 0", name="ck_document_lines_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_document_lines_unit_price_positive"),
        CheckConstraint(
            "discount_percent >= 0 AND discount_percent <= 100",
            name="ck_document_lines_discount_percent",
        ),
        CheckConstraint("tax_rate >= 0", name="ck_document_lines_tax_rate_positive"),
    )

    def __repr__(self) -> str:
        return f"<DocumentLine(document={self.document_id}, n={self.line_number}, total={self.total})>"
