"""
SQLAlchemy models for quotations
Project: GST Ledger

Quotations carry priced lines but no money ledger; an accepted quotation
is converted into a new draft invoice.
"""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import List

from sqlalchemy import (
    CheckConstraint,
    Date,
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

QUOTE_DRAFT = "draft"
QUOTE_SENT = "sent"
QUOTE_ACCEPTED = "accepted"
QUOTE_REJECTED = "rejected"
QUOTE_EXPIRED = "expired"
QUOTE_CONVERTED = "converted"
QUOTATION_STATUSES = (
    QUOTE_DRAFT,
    QUOTE_SENT,
    QUOTE_ACCEPTED,
    QUOTE_REJECTED,
    QUOTE_EXPIRED,
    QUOTE_CONVERTED,
)


class Quotation(Base, UUIDMixin, TimestampMixin, TeamScopedMixin):
    """
    Price offer to a customer.

    Attributes:
        quotation_number: QT-YYYY-NNNN
        counterparty_id: customer the offer is addressed to
        quotation_date: issue date
        valid_until: offer expiry date
        status: draft | sent | accepted | rejected | expired | converted
        converted_invoice_id: invoice created from this quotation
    """

    __tablename__ = "quotations"

    quotation_number: Mapped[str] = mapped_column(String(30), nullable=False)

    counterparty_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    quotation_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)

    valid_until: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    subtotal: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    total_discount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    total_tax: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False)

    converted_invoice_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="SET NULL"),
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    lines: Mapped[List["QuotationLine"]] = relationship(
        "QuotationLine",
        back_populates="quotation",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="QuotationLine.line_number",
    )

    __table_args__ = (
        Index("ix_quotations_team_number", "team_id", "quotation_number", unique=True),
        CheckConstraint(
            "status IN ('draft', 'sent', 'accepted', 'rejected', 'expired', 'converted')",
            name="ck_quotations_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Quotation(id={self.id}, number={self.quotation_number}, status={self.status})>"


class QuotationLine(Base, UUIDMixin, TimestampMixin, LineAmountsMixin):
    """Priced line item of a quotation."""

    __tablename__ = "quotation_lines"

    quotation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("quotations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    quotation: Mapped["Quotation"] = relationship(
        "Quotation",
        back_populates="lines",
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_quotation_lines_quantity_positive"),
    )
