"""
SQLAlchemy database models
Project: GST Ledger

Central import of every model, so Base.metadata knows all tables.

Models:
- Document / DocumentLine: invoices and supplier bills
- Payment, Advance, Allocation, Adjustment: money ledger
- GstPeriodLock: filed GST periods
- ActivityLog: audit trail
- Quotation / QuotationLine: price offers
- NumberSequence: per-team numbering
"""

# SQLAlchemy 2.0 declarative base
# Defined here so every model module can import it
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


from gst_ledger.models.document import Document, DocumentLine
from gst_ledger.models.ledger import Payment, Advance, Allocation, Adjustment
from gst_ledger.models.period_lock import GstPeriodLock
from gst_ledger.models.activity import ActivityLog
from gst_ledger.models.quotation import Quotation, QuotationLine
from gst_ledger.models.sequence import NumberSequence

__all__ = [
    "Base",
    "Document",
    "DocumentLine",
    "Payment",
    "Advance",
    "Allocation",
    "Adjustment",
    "GstPeriodLock",
    "ActivityLog",
    "Quotation",
    "QuotationLine",
    "NumberSequence",
]
