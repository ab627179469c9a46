"""
Pydantic schemas for the GST Ledger project

Request validation and response serialisation for the API.
"""

# Re-exported for direct import
# e.g.: from gst_ledger.schemas import DocumentRead, PaymentCreate

from gst_ledger.schemas.document import (
    DocumentCancel,
    DocumentCreate,
    DocumentKind,
    DocumentLinesUpdate,
    DocumentRead,
    DocumentStatus,
    LineItemCreate,
    LineItemRead,
    PaymentStatus,
)
from gst_ledger.schemas.ledger import (
    ActivityRead,
    AdjustmentCreate,
    AdjustmentRead,
    AdjustmentType,
    AdvanceCreate,
    AdvanceDetail,
    AdvanceDirection,
    AdvanceRead,
    AllocationItem,
    AllocationRead,
    AllocationRequest,
    ReceiptCreate,
    DocumentDetail,
    PaymentCreate,
    PaymentMethod,
    PaymentRead,
)
from gst_ledger.schemas.period_lock import DateLockStatus, PeriodLockCreate, PeriodLockRead
from gst_ledger.schemas.quotation import (
    QuotationConvert,
    QuotationCreate,
    QuotationRead,
    QuotationStatus,
    QuotationStatusUpdate,
)

__all__ = [
    "DocumentCancel",
    "DocumentCreate",
    "DocumentKind",
    "DocumentLinesUpdate",
    "DocumentRead",
    "DocumentStatus",
    "LineItemCreate",
    "LineItemRead",
    "PaymentStatus",
    "ActivityRead",
    "AdjustmentCreate",
    "AdjustmentRead",
    "AdjustmentType",
    "AdvanceCreate",
    "AdvanceDetail",
    "AdvanceDirection",
    "AdvanceRead",
    "AllocationItem",
    "AllocationRead",
    "AllocationRequest",
    "ReceiptCreate",
    "DocumentDetail",
    "PaymentCreate",
    "PaymentMethod",
    "PaymentRead",
    "DateLockStatus",
    "PeriodLockCreate",
    "PeriodLockRead",
    "QuotationConvert",
    "QuotationCreate",
    "QuotationRead",
    "QuotationStatus",
    "QuotationStatusUpdate",
]
