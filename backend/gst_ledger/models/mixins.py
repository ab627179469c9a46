"""
SQLAlchemy model mixins
Project: GST Ledger

Reusable columns shared by the ledger models.
"""

import datetime
import uuid
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Uuid
from sqlalchemy import event
from sqlalchemy.orm import Mapped, mapped_column, Session
from sqlalchemy.sql import func


class TimestampMixin:
    """
    Automatic creation and update timestamps.

    Adds:
    - created_at: set by the database on insert
    - updated_at: refreshed by the before_flush listener below
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Row creation time",
    )

    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Last update time",
    )


class UUIDMixin:
    """UUID primary key generated on insert."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc="UUID primary key",
    )


class TeamScopedMixin:
    """
    Tenant column.

    Every ledger row belongs to exactly one team; repositories filter on it
    in every query.
    """

    team_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
        doc="Owning team (tenant)",
    )


class LineAmountsMixin:
    """
    Priced line item columns shared by document and quotation lines.

    The amounts are computed by the document service when lines are
    written and stored as-is.
    """

    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False)

    quantity: Mapped[Decimal] = mapped_column(
        Numeric(12, 3),
        nullable=False,
        doc="Quantity",
    )

    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        doc="Unit price before discount and tax",
    )

    discount_percent: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="Line discount (0-100)",
    )

    tax_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="GST rate applied to the discounted subtotal",
    )

    tax_exempt: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="No GST on this line",
    )

    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        doc="quantity * unit_price",
    )

    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        doc="subtotal * discount_percent / 100",
    )

    tax_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        doc="(subtotal - discount_amount) * tax_rate / 100",
    )

    total: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        doc="subtotal - discount_amount + tax_amount",
    )


# ------------------------------------------------------------
# Event Listeners
# ------------------------------------------------------------
@event.listens_for(Session, "before_flush")
def update_timestamp(session: Session, flush_context, instances) -> None:
    """
    Refresh updated_at on new and modified rows before every flush.

    Args:
        session: SQLAlchemy session
        flush_context: flush context
        instances: unused
    """
    now = datetime.datetime.now(datetime.timezone.utc)

    for obj in session.dirty:
        if hasattr(obj, "updated_at"):
            if session.is_modified(obj, include_collections=False):
                obj.updated_at = now

    for obj in session.new:
        if hasattr(obj, "updated_at"):
            obj.updated_at = now
        # Set client-side so the value is readable without a refresh
        if hasattr(obj, "created_at") and obj.created_at is None:
            obj.created_at = now
