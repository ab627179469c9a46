"""
Pydantic schemas for quotations
Project: GST Ledger
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gst_ledger.schemas.document import LineItemCreate, LineItemRead


class QuotationStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"


class QuotationCreate(BaseModel):
    counterparty_id: uuid.UUID = Field(..., serialization_alias="counterpartyId")
    quotation_date: date = Field(..., serialization_alias="quotationDate")
    valid_until: Optional[date] = Field(default=None, serialization_alias="validUntil")
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    lines: list[LineItemCreate] = Field(..., min_length=1)
    notes: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class QuotationStatusUpdate(BaseModel):
    status: QuotationStatus


class QuotationConvert(BaseModel):
    """Options for turning an accepted quotation into an invoice."""

    document_date: Optional[date] = Field(
        default=None,
        description="Invoice date, defaults to today",
        serialization_alias="documentDate",
    )
    due_date: Optional[date] = Field(default=None, serialization_alias="dueDate")


class QuotationRead(BaseModel):
    id: uuid.UUID
    quotation_number: str = Field(..., alias="quotationNumber")
    counterparty_id: uuid.UUID = Field(..., alias="counterpartyId")
    quotation_date: date = Field(..., alias="quotationDate")
    valid_until: Optional[date] = Field(default=None, alias="validUntil")
    currency: str
    subtotal: Decimal
    total_discount: Decimal = Field(..., alias="totalDiscount")
    total_tax: Decimal = Field(..., alias="totalTax")
    total_amount: Decimal = Field(..., alias="totalAmount")
    status: QuotationStatus
    converted_invoice_id: Optional[uuid.UUID] = Field(
        default=None,
        alias="convertedInvoiceId",
    )
    notes: Optional[str] = None
    lines: list[LineItemRead] = Field(default_factory=list)
    created_at: datetime = Field(..., alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
