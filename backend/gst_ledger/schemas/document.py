"""
Pydantic schemas for documents
Project: GST Ledger

Contains:
- Enums: DocumentKind, DocumentStatus, PaymentStatus
- Line item schemas (shared with quotations)
- Document create / update / read schemas
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# -------------------------------------------------------------------
# Enums
# -------------------------------------------------------------------

class DocumentKind(str, Enum):
    """Balance-bearing document kinds."""
    INVOICE = "invoice"
    BILL = "bill"


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


# -------------------------------------------------------------------
# Line items
# -------------------------------------------------------------------

class LineItemCreate(BaseModel):
    """Priced line as supplied by the catalog/pricing collaborator."""

    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(..., gt=0, description="Quantity")
    unit_price: Decimal = Field(
        ...,
        ge=0,
        description="Unit price before discount and tax",
        serialization_alias="unitPrice",
    )
    discount_percent: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=100,
        serialization_alias="discountPercent",
    )
    tax_rate: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=100,
        description="GST rate in percent",
        serialization_alias="taxRate",
    )
    tax_exempt: bool = Field(default=False, serialization_alias="taxExempt")


class LineItemRead(BaseModel):
    """Stored line with its computed amounts."""

    id: uuid.UUID
    line_number: int = Field(..., alias="lineNumber")
    description: str
    quantity: Decimal
    unit_price: Decimal = Field(..., alias="unitPrice")
    discount_percent: Decimal = Field(..., alias="discountPercent")
    tax_rate: Decimal = Field(..., alias="taxRate")
    tax_exempt: bool = Field(..., alias="taxExempt")
    subtotal: Decimal
    discount_amount: Decimal = Field(..., alias="discountAmount")
    tax_amount: Decimal = Field(..., alias="taxAmount")
    total: Decimal

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# -------------------------------------------------------------------
# Documents
# -------------------------------------------------------------------

class DocumentCreate(BaseModel):
    """Schema to create a draft invoice or supplier bill."""

    kind: DocumentKind
    counterparty_id: uuid.UUID = Field(..., serialization_alias="counterpartyId")
    document_date: date = Field(..., serialization_alias="documentDate")
    due_date: Optional[date] = Field(default=None, serialization_alias="dueDate")
    currency: Optional[str] = Field(
        default=None,
        min_length=3,
        max_length=3,
        description="ISO code, defaults to the configured currency",
    )
    lines: list[LineItemCreate] = Field(..., min_length=1)
    notes: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class DocumentLinesUpdate(BaseModel):
    """Replace the lines of a draft document."""

    lines: list[LineItemCreate] = Field(..., min_length=1)
    due_date: Optional[date] = Field(default=None, serialization_alias="dueDate")
    notes: Optional[str] = None


class DocumentCancel(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class DocumentRead(BaseModel):
    """Document with its balance and derived lock flag."""

    id: uuid.UUID
    kind: DocumentKind
    document_number: str = Field(..., alias="documentNumber")
    counterparty_id: uuid.UUID = Field(..., alias="counterpartyId")
    document_date: date = Field(..., alias="documentDate")
    due_date: Optional[date] = Field(default=None, alias="dueDate")
    currency: str
    subtotal: Decimal
    total_discount: Decimal = Field(..., alias="totalDiscount")
    total_tax: Decimal = Field(..., alias="totalTax")
    total_amount: Decimal = Field(..., alias="totalAmount")
    amount_paid: Decimal = Field(..., alias="amountPaid")
    amount_due: Decimal = Field(..., alias="amountDue")
    status: DocumentStatus
    payment_status: PaymentStatus = Field(..., alias="paymentStatus")
    is_locked: bool = Field(default=False, alias="isLocked")
    sent_at: Optional[datetime] = Field(default=None, alias="sentAt")
    cancelled_at: Optional[datetime] = Field(default=None, alias="cancelledAt")
    cancel_reason: Optional[str] = Field(default=None, alias="cancelReason")
    notes: Optional[str] = None
    lines: list[LineItemRead] = Field(default_factory=list)
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
