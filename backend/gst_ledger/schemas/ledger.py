"""
Pydantic schemas for the money ledger
Project: GST Ledger

Contains:
- Payment create/read
- Adjustment create/read
- Advance create/read, allocation requests
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gst_ledger.schemas.document import DocumentRead


# -------------------------------------------------------------------
# Enums
# -------------------------------------------------------------------

class PaymentMethod(str, Enum):
    """Supported payment methods."""
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    CARD = "card"
    CHEQUE = "cheque"
    OTHER = "other"


class AdjustmentType(str, Enum):
    CREDIT_NOTE = "credit_note"
    DEBIT_NOTE = "debit_note"
    DISCOUNT = "discount"
    LATE_FEE = "late_fee"
    BANK_CHARGES = "bank_charges"
    OTHER = "other"


class AdvanceDirection(str, Enum):
    """customer: received, applied to invoices. supplier: paid, applied to bills."""
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


# -------------------------------------------------------------------
# Payments
# -------------------------------------------------------------------

class PaymentCreate(BaseModel):
    document_id: uuid.UUID = Field(..., serialization_alias="documentId")
    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Amount paid (> 0)")
    payment_date: date = Field(..., serialization_alias="paymentDate")
    method: PaymentMethod = PaymentMethod.CASH
    reference_number: Optional[str] = Field(
        default=None,
        max_length=100,
        serialization_alias="referenceNumber",
    )
    notes: Optional[str] = None


class PaymentRead(BaseModel):
    id: uuid.UUID
    document_id: uuid.UUID = Field(..., alias="documentId")
    receipt_number: str = Field(..., alias="receiptNumber")
    amount: Decimal
    payment_date: date = Field(..., alias="paymentDate")
    method: PaymentMethod
    reference_number: Optional[str] = Field(default=None, alias="referenceNumber")
    notes: Optional[str] = None
    created_at: datetime = Field(..., alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# -------------------------------------------------------------------
# Adjustments
# -------------------------------------------------------------------

class AdjustmentCreate(BaseModel):
    """
    Adjustment request.

    The sign of `amount` is ignored for every type except 'other': credit
    notes and discounts always reduce the amount due, debit notes and fees
    always increase it.
    """

    document_id: uuid.UUID = Field(..., serialization_alias="documentId")
    adjustment_type: AdjustmentType = Field(..., serialization_alias="adjustmentType")
    amount: Decimal = Field(..., decimal_places=2)
    description: str = Field(..., min_length=1, max_length=500)
    adjustment_date: date = Field(..., serialization_alias="adjustmentDate")
    reference_number: Optional[str] = Field(
        default=None,
        max_length=100,
        serialization_alias="referenceNumber",
    )


class AdjustmentRead(BaseModel):
    id: uuid.UUID
    document_id: uuid.UUID = Field(..., alias="documentId")
    adjustment_type: AdjustmentType = Field(..., alias="adjustmentType")
    signed_amount: Decimal = Field(..., alias="signedAmount")
    description: str
    adjustment_date: date = Field(..., alias="adjustmentDate")
    reference_number: Optional[str] = Field(default=None, alias="referenceNumber")
    created_at: datetime = Field(..., alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# -------------------------------------------------------------------
# Advances and allocations
# -------------------------------------------------------------------

class AdvanceCreate(BaseModel):
    direction: AdvanceDirection
    counterparty_id: uuid.UUID = Field(..., serialization_alias="counterpartyId")
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    advance_date: date = Field(..., serialization_alias="advanceDate")
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    reference_number: Optional[str] = Field(
        default=None,
        max_length=100,
        serialization_alias="referenceNumber",
    )
    notes: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class AllocationItem(BaseModel):
    """One target of an allocation request."""

    document_id: uuid.UUID = Field(..., serialization_alias="documentId")
    amount: Decimal = Field(..., decimal_places=2)


class AllocationRequest(BaseModel):
    allocations: list[AllocationItem] = Field(..., min_length=1)


class ReceiptCreate(BaseModel):
    """
    One receipt split across several documents of the same counterparty.

    The splits may total less than the receipt; the difference stays
    unallocated on it and can be applied later like any advance.
    """

    direction: AdvanceDirection = AdvanceDirection.CUSTOMER
    counterparty_id: uuid.UUID = Field(..., serialization_alias="counterpartyId")
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_date: date = Field(..., serialization_alias="paymentDate")
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    method: PaymentMethod = PaymentMethod.CASH
    reference_number: Optional[str] = Field(
        default=None,
        max_length=100,
        serialization_alias="referenceNumber",
    )
    notes: Optional[str] = None
    allocations: list[AllocationItem] = Field(..., min_length=1)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class AllocationRead(BaseModel):
    id: uuid.UUID
    advance_id: uuid.UUID = Field(..., alias="advanceId")
    document_id: uuid.UUID = Field(..., alias="documentId")
    amount: Decimal
    allocated_at: datetime = Field(..., alias="allocatedAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class AdvanceRead(BaseModel):
    id: uuid.UUID
    advance_number: str = Field(..., alias="advanceNumber")
    direction: AdvanceDirection
    counterparty_id: uuid.UUID = Field(..., alias="counterpartyId")
    currency: str
    total_amount: Decimal = Field(..., alias="totalAmount")
    unallocated_amount: Decimal = Field(..., alias="unallocatedAmount")
    allocation_state: str = Field(..., alias="allocationState")
    advance_date: date = Field(..., alias="advanceDate")
    method: PaymentMethod
    reference_number: Optional[str] = Field(default=None, alias="referenceNumber")
    notes: Optional[str] = None
    created_at: datetime = Field(..., alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class AdvanceDetail(AdvanceRead):
    allocations: list[AllocationRead] = Field(default_factory=list)


class DocumentDetail(DocumentRead):
    """Document with every ledger entry that produced its balance."""

    payments: list[PaymentRead] = Field(default_factory=list)
    allocations: list[AllocationRead] = Field(default_factory=list)
    adjustments: list[AdjustmentRead] = Field(default_factory=list)


# -------------------------------------------------------------------
# Audit
# -------------------------------------------------------------------

class ActivityRead(BaseModel):
    id: uuid.UUID
    actor_id: uuid.UUID = Field(..., alias="actorId")
    action: str
    entity_type: str = Field(..., alias="entityType")
    entity_id: uuid.UUID = Field(..., alias="entityId")
    description: str
    created_at: datetime = Field(..., alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
